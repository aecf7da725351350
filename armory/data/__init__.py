"""
Data layer for the armory system.

One module per table; models carry columns and constraints only. Business
rules live in armory.business.
"""
