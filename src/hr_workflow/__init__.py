"""HR attendance regularization workflow.

Organized by feature modules (users, attendance, regularization,
notifications) with a thin Flask controller layer over service and
repository layers.
"""
