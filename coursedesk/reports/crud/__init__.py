"""Reports CRUD Package"""
