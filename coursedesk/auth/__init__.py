"""Seeded accounts and password login"""
