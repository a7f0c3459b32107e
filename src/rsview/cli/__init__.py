"""
rsview command line interface.
"""
