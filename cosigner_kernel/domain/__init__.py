"""
Pure domain layer.

Codec, digest and signer recovery, currency conversion and coverage
arithmetic.  No dependencies on the ORM or the database.
"""

from cosigner_kernel.domain.addresses import NULL_ADDRESS, is_null_address, is_same_address, to_address
from cosigner_kernel.domain.authorization import (
    AUTHORIZATION_LENGTH,
    DATA_LENGTH,
    SIGNATURE_LENGTH,
    Authorization,
    CosignerData,
    Signature,
    decode_authorization,
    decode_data,
    encode_data,
    split_signature,
)
from cosigner_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from cosigner_kernel.domain.conversion import CurrencyConverter
from cosigner_kernel.domain.coverage import BASIS_POINTS, claim_amount, is_past_arrears
from cosigner_kernel.domain.interfaces import (
    ContractDirectory,
    LoanLedger,
    LoanRegistry,
    PaymentStatus,
    RateOracle,
    SettlementToken,
)
from cosigner_kernel.domain.signature import (
    EthereumSignatureVerifier,
    SignatureVerifier,
    authorize,
    compute_digest,
    sign_authorization,
    sign_digest,
)

__all__ = [
    "AUTHORIZATION_LENGTH",
    "Authorization",
    "BASIS_POINTS",
    "Clock",
    "ContractDirectory",
    "CosignerData",
    "CurrencyConverter",
    "DATA_LENGTH",
    "DeterministicClock",
    "EthereumSignatureVerifier",
    "LoanLedger",
    "LoanRegistry",
    "NULL_ADDRESS",
    "PaymentStatus",
    "RateOracle",
    "SIGNATURE_LENGTH",
    "SettlementToken",
    "Signature",
    "SignatureVerifier",
    "SystemClock",
    "authorize",
    "claim_amount",
    "compute_digest",
    "decode_authorization",
    "decode_data",
    "encode_data",
    "is_null_address",
    "is_past_arrears",
    "is_same_address",
    "sign_authorization",
    "sign_digest",
    "split_signature",
    "to_address",
]
