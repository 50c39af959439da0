"""WorkHub core package.

This package is organized by feature modules (users, attendance, leave, tasks,
chat, ...) with a thin Flask controller layer on top of service/repository
layers.
"""
