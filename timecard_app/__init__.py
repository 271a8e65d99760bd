"""
Time Card OCR App - AI-based time card extraction and reconciliation.

This package provides functionality for:
- Vision LLM extraction from time card images and PDFs
- Roster-based name correction and merging of split time cards
- Attendance calculation from work patterns
- Excel export and template filling
"""

__version__ = "0.1.0"
__author__ = "Time Card OCR App"
