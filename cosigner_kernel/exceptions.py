"""
Typed Exception Hierarchy for the Cosigner Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from CosignerKernelError:

    CosignerKernelError (base)
    |
    +-- AuthorizationError
    |   +-- InvalidLengthError
    |   +-- FieldOutOfRangeError
    |   +-- InvalidSignatureError
    |   +-- NotDelegateError
    |   +-- AuthorizationExpiredError
    |
    +-- CosignError
    |   +-- WrongCallerError
    |   +-- ZeroCoverageError
    |   +-- LiabilityAlreadyExistsError
    |   +-- RegistryRejectedError
    |
    +-- LiabilityError
    |   +-- LiabilityNotFoundError
    |   +-- NotDefaultedError
    |   +-- NotClaimedError
    |
    +-- AccessError
    |   +-- NotOwnerError
    |   +-- NotAuthorizedError
    |   +-- CosignerNotInitializedError
    |
    +-- TreasuryError
    |   +-- InsufficientFundsError
    |   +-- InvalidDestinationError
    |
    +-- CollaboratorError
        +-- OracleError
        +-- UnknownContractError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Authorization   | INVALID_LENGTH              | Blob is not 34 or 99 bytes
                | FIELD_OUT_OF_RANGE          | Field does not fit its bit width
                | INVALID_SIGNATURE           | Recovery failed or gave zero address
                | NOT_DELEGATE                | Signer is not an active delegate
                | AUTHORIZATION_EXPIRED       | expiration <= now
----------------|-----------------------------|-----------------------------------------
Cosign          | WRONG_CALLER                | Caller is not the registry it names
                | ZERO_COVERAGE               | Authorization grants no coverage
                | ALREADY_EXISTS              | Liability already recorded for loan
                | REGISTRY_REJECTED           | Registry refused the cosign callback
----------------|-----------------------------|-----------------------------------------
Liability       | NOT_FOUND                   | No liability for (registry, loan id)
                | NOT_DEFAULTED               | Loan not in default (or claimed)
                | NOT_CLAIMED                 | Collateral not yet claimed
----------------|-----------------------------|-----------------------------------------
Access          | NOT_OWNER                   | Caller lacks the required ownership
                | NOT_AUTHORIZED              | Ledger refused a collateral transfer
                | COSIGNER_NOT_INITIALIZED    | Settings row missing
----------------|-----------------------------|-----------------------------------------
Treasury        | INSUFFICIENT_FUNDS          | Token balance short for a payment
                | INVALID_DESTINATION         | Destination is the null address
----------------|-----------------------------|-----------------------------------------
Collaborator    | ORACLE_ERROR                | Oracle rejected data / zero denominator
                | UNKNOWN_CONTRACT            | Address not in the contract directory

===============================================================================
HANDLING PATTERNS
===============================================================================

Every failure is terminal for the call that raised it.  The orchestrator
rolls back the transaction, so prior state is untouched.  Retrying only
makes sense with fresh inputs, e.g. a new authorization after expiry:

    try:
        orchestrator.request_cosign(registry, registry, loan_id, blob)
    except AuthorizationExpiredError as e:
        blob = request_new_authorization(e.expiration)
    except CosignError as e:
        api_response(code=e.code)
"""


class CosignerKernelError(Exception):
    """
    Base exception for all cosigner kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "COSIGNER_KERNEL_ERROR"


# Authorization-related exceptions


class AuthorizationError(CosignerKernelError):
    """Base exception for authorization blob and signature errors."""

    code: str = "AUTHORIZATION_ERROR"


class InvalidLengthError(AuthorizationError):
    """Authorization blob has an unsupported byte length."""

    code: str = "INVALID_LENGTH"

    def __init__(self, length: int, expected: tuple[int, ...]):
        self.length = length
        self.expected = expected
        super().__init__(
            f"Invalid data length {length}, expected one of {list(expected)}"
        )


class FieldOutOfRangeError(AuthorizationError):
    """Field value does not fit in its encoded bit width."""

    code: str = "FIELD_OUT_OF_RANGE"

    def __init__(self, field: str, value: int, bits: int):
        self.field = field
        self.value = value
        self.bits = bits
        super().__init__(f"{field}={value} does not fit in uint{bits}")


class InvalidSignatureError(AuthorizationError):
    """Signer could not be recovered from the signature."""

    code: str = "INVALID_SIGNATURE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid signature: {reason}")


class NotDelegateError(AuthorizationError):
    """Recovered signer is not an active delegate."""

    code: str = "NOT_DELEGATE"

    def __init__(self, signer: str):
        self.signer = signer
        super().__init__(f"The signer {signer} is not a delegate")


class AuthorizationExpiredError(AuthorizationError):
    """Authorization expiration is not in the future."""

    code: str = "AUTHORIZATION_EXPIRED"

    def __init__(self, expiration: int, now: int):
        self.expiration = expiration
        self.now = now
        super().__init__(
            f"Authorization expired at {expiration} (now {now})"
        )


# Cosign-related exceptions


class CosignError(CosignerKernelError):
    """Base exception for cosign request errors."""

    code: str = "COSIGN_ERROR"


class WrongCallerError(CosignError):
    """Cosign was requested by someone other than the named registry."""

    code: str = "WRONG_CALLER"

    def __init__(self, caller: str, registry: str):
        self.caller = caller
        self.registry = registry
        super().__init__(
            f"Caller {caller} is not the registry {registry}"
        )


class ZeroCoverageError(CosignError):
    """Authorization grants zero coverage."""

    code: str = "ZERO_COVERAGE"

    def __init__(self, registry: str, loan_id: int):
        self.registry = registry
        self.loan_id = loan_id
        super().__init__(f"Coverage should not be 0 for loan {loan_id}")


class LiabilityAlreadyExistsError(CosignError):
    """A liability for the loan has already been recorded."""

    code: str = "ALREADY_EXISTS"

    def __init__(self, registry: str, loan_id: int):
        self.registry = registry
        self.loan_id = loan_id
        super().__init__(
            f"Liability already exists for loan {loan_id} on {registry}"
        )


class RegistryRejectedError(CosignError):
    """Registry answered False to the cosign fee callback."""

    code: str = "REGISTRY_REJECTED"

    def __init__(self, registry: str, loan_id: int, cost: int):
        self.registry = registry
        self.loan_id = loan_id
        self.cost = cost
        super().__init__(
            f"Registry {registry} rejected cosign of loan {loan_id} (cost {cost})"
        )


# Liability-related exceptions


class LiabilityError(CosignerKernelError):
    """Base exception for liability state errors."""

    code: str = "LIABILITY_ERROR"


class LiabilityNotFoundError(LiabilityError):
    """No liability recorded for (registry, loan id)."""

    code: str = "NOT_FOUND"

    def __init__(self, registry: str, loan_id: int):
        self.registry = registry
        self.loan_id = loan_id
        super().__init__(f"Liability not found for loan {loan_id} on {registry}")


class NotDefaultedError(LiabilityError):
    """Liability is not claimable: loan not defaulted or already claimed."""

    code: str = "NOT_DEFAULTED"

    def __init__(self, registry: str, loan_id: int, reason: str):
        self.registry = registry
        self.loan_id = loan_id
        self.reason = reason
        super().__init__(
            f"Liability for loan {loan_id} is not defaulted: {reason}"
        )


class NotClaimedError(LiabilityError):
    """Collateral can only be redirected after a claim."""

    code: str = "NOT_CLAIMED"

    def __init__(self, registry: str, loan_id: int):
        self.registry = registry
        self.loan_id = loan_id
        super().__init__(f"Liability for loan {loan_id} is not claimed")


# Access-related exceptions


class AccessError(CosignerKernelError):
    """Base exception for caller permission errors."""

    code: str = "ACCESS_ERROR"


class NotOwnerError(AccessError):
    """Caller does not hold the ownership the operation requires."""

    code: str = "NOT_OWNER"

    def __init__(self, sender: str, owner: str, subject: str = "cosigner"):
        self.sender = sender
        self.owner = owner
        self.subject = subject
        super().__init__(f"{sender} is not the owner of the {subject}")


class NotAuthorizedError(AccessError):
    """Debt ledger refused to move the collateral token."""

    code: str = "NOT_AUTHORIZED"

    def __init__(self, registry: str, loan_id: int | None, reason: str):
        self.registry = registry
        self.loan_id = loan_id
        self.reason = reason
        if loan_id is None:
            super().__init__(f"Not authorized to move loans: {reason}")
        else:
            super().__init__(f"Not authorized to move loan {loan_id}: {reason}")


class CosignerNotInitializedError(AccessError):
    """Cosigner settings have not been created yet."""

    code: str = "COSIGNER_NOT_INITIALIZED"

    def __init__(self, cosigner: str):
        self.cosigner = cosigner
        super().__init__(f"Cosigner {cosigner} is not initialized")


# Treasury-related exceptions


class TreasuryError(CosignerKernelError):
    """Base exception for fund movement errors."""

    code: str = "TREASURY_ERROR"


class InsufficientFundsError(TreasuryError):
    """Token balance does not cover a transfer."""

    code: str = "INSUFFICIENT_FUNDS"

    def __init__(self, token: str, holder: str, required: int, available: int):
        self.token = token
        self.holder = holder
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient {token} balance for {holder}: "
            f"required {required}, available {available}"
        )


class InvalidDestinationError(TreasuryError):
    """Destination address is the null address."""

    code: str = "INVALID_DESTINATION"

    def __init__(self, destination: str):
        self.destination = destination
        super().__init__(f"Invalid destination address: {destination}")


# Collaborator-related exceptions


class CollaboratorError(CosignerKernelError):
    """Base exception for failures reported by external collaborators."""

    code: str = "COLLABORATOR_ERROR"


class OracleError(CollaboratorError):
    """Rate oracle rejected the data or returned a degenerate rate."""

    code: str = "ORACLE_ERROR"

    def __init__(self, oracle: str, reason: str):
        self.oracle = oracle
        self.reason = reason
        super().__init__(f"Oracle {oracle} failed: {reason}")


class UnknownContractError(CollaboratorError):
    """Address is not registered in the contract directory."""

    code: str = "UNKNOWN_CONTRACT"

    def __init__(self, kind: str, address: str):
        self.kind = kind
        self.address = address
        super().__init__(f"Unknown {kind} contract: {address}")
