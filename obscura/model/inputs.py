from dataclasses import dataclass


@dataclass(frozen=True)
class EncryptedInput:
    """
    Client-encrypted value submitted with a ledger call.

    ciphertext: Base64 serialized ciphertext
    proof: Hex input-verifier signature binding the ciphertext to (caller, context)
    """
    ciphertext: str
    proof: str
