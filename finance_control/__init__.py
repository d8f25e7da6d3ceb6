"""
Finance Control

Personal-finance record keeping: transactions split across responsible
parties, financial goals and investment holdings, served through one
generic list/filter/sort/page/metadata query engine.
"""

__version__ = "0.1.0"
