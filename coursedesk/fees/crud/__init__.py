"""Fee CRUD Package"""
