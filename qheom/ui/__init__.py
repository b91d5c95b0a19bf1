"""
User interface helpers: progress reporting for long-running HEOM steps.
"""
from .progressbar import *
