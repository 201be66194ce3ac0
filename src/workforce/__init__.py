"""Workforce package.

Organized by feature modules (users, tasks, attendance) with a thin Flask
controller layer over service/repository layers.
"""
