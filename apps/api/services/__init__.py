"""
Services package for MedStock API
Contains inventory business logic: status rules, stock operations, analytics
"""
