"""
Shared test data: company, site centre and the working day used across tests
"""
from datetime import date

COMPANY_ID = 1
SITE_LAT = 28.6139
SITE_LNG = 77.2090
# Monday
WORK_DAY = date(2026, 3, 2)
