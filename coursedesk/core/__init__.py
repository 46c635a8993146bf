"""Shared infrastructure: config, database, errors, logging, auth"""
