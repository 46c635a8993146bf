"""Fee Services Package"""
