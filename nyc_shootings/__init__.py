"""
NYC Shootings - exploratory analysis of NYPD shooting incident data.

Downloads the NYPD Shooting Incident Data (Historic) CSV, cleans it,
counts incidents by time, borough and demographic buckets, renders
charts and fits monthly count regressions for one borough.
"""

__version__ = "0.1.0"
