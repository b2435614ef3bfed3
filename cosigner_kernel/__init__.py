"""
Cosigner Kernel

Third-party loan cosigner with:
- Compact signed authorizations (no per-loan registration)
- Delegated signers managed by the owner
- One liability record per (registry, loan id)
- Default detection, proportional claim payout
- Post-claim recovery of proceeds and collateral
"""

__version__ = "0.1.0"
