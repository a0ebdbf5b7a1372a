from .models import (
    BalanceSheet,
    CashFlowStatement,
    CompanyData,
    CompanyProfile,
    FinancialStatement,
    StockPrice,
)
from .snapshot import dump_company_data, load_company_data
from .synthetic import generate_company_data

__all__ = [
    "BalanceSheet",
    "CashFlowStatement",
    "CompanyData",
    "CompanyProfile",
    "FinancialStatement",
    "StockPrice",
    "dump_company_data",
    "load_company_data",
    "generate_company_data",
]
