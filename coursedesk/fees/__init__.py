"""Fee catalogue, custom student fees and payments"""
