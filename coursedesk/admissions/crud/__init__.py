"""Admissions CRUD Package"""
