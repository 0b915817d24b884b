"""Routing — pattern compilation, route groups, and the ordered route table.

Routes are registered during setup, compiled as they are registered, and
matched in registration order.
"""
