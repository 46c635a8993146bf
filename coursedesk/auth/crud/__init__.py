"""Auth CRUD Package"""
