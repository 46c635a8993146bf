"""Reports Services Package"""
