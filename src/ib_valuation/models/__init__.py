"""
Valuation Models

Single-scenario calculators:
- DCF, FCF analysis, LBO
- Trading comps, precedent transactions
- Credit capacity, sum-of-the-parts, IPO pricing
- Operating / unit economics, three-statement projection
- M&A accretion / dilution

Composition layers:
- Sensitivity & scenario analysis (drives DCF)
- IC memo (DCF + comps + precedents, LBO returns)
"""

from .comps import CompsModel, CompsResult, PeerCompany, generate_peers
from .credit import CreditInputs, CreditModel, CreditResult
from .dcf import DCFInputs, DCFModel, DCFValuation, capm_wacc
from .fcf import FCFAnalysis, FCFInputs, FCFModel, average_fcf, fcf_per_share, fcf_yield
from .ic_memo import ICMemo, ICMemoInputs, ICMemoModel
from .ipo import IPOInputs, IPOModel, IPOResult
from .lbo import LBOInputs, LBOModel, LBOResult
from .ma import MAInputs, MAModel, MAResult
from .operating import OperatingInputs, OperatingModel, OperatingResult
from .precedent import PrecedentResult, PrecedentTransactionModel, Transaction, generate_transactions
from .sensitivity import SensitivityInputs, SensitivityModel, SensitivityResult, SensitivityVariables
from .sotp import BusinessSegment, SOTPInputs, SOTPModel, SOTPResult
from .three_statement import Carry, ThreeStatementInputs, ThreeStatementModel, ThreeStatementResult

__all__ = [
    "CompsModel",
    "CompsResult",
    "PeerCompany",
    "generate_peers",
    "CreditInputs",
    "CreditModel",
    "CreditResult",
    "DCFInputs",
    "DCFModel",
    "DCFValuation",
    "capm_wacc",
    "FCFAnalysis",
    "FCFInputs",
    "FCFModel",
    "average_fcf",
    "fcf_per_share",
    "fcf_yield",
    "ICMemo",
    "ICMemoInputs",
    "ICMemoModel",
    "IPOInputs",
    "IPOModel",
    "IPOResult",
    "LBOInputs",
    "LBOModel",
    "LBOResult",
    "MAInputs",
    "MAModel",
    "MAResult",
    "OperatingInputs",
    "OperatingModel",
    "OperatingResult",
    "PrecedentResult",
    "PrecedentTransactionModel",
    "Transaction",
    "generate_transactions",
    "SensitivityInputs",
    "SensitivityModel",
    "SensitivityResult",
    "SensitivityVariables",
    "BusinessSegment",
    "SOTPInputs",
    "SOTPModel",
    "SOTPResult",
    "Carry",
    "ThreeStatementInputs",
    "ThreeStatementModel",
    "ThreeStatementResult",
]
