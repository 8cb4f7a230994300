"""
Crypto Engine Service - Handle-addressed homomorphic capability

Structure:
- base.py: CryptoEngine (interface + handle table + input proofs)
- openfhe_engine.py: OpenFHEEngine (BFV backend)
- polynomial.py: Interpolation tables for homomorphic lookups
- context.py / serialization.py: OpenFHE plumbing

The OpenFHE backend is imported from its own module so the ledger can be used
with any engine implementing CryptoEngine.
"""

from .base import CryptoEngine, Cleartext
from .polynomial import interpolate, fold_coefficients, evaluate

__all__ = [
    'CryptoEngine',
    'Cleartext',
    'interpolate',
    'fold_coefficients',
    'evaluate',
]
