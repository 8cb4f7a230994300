"""
OpenFHE Engine - BFV backend for the handle-addressed crypto engine
"""
from typing import Any, Dict, List

from obscura.config import CRYPTO_CONFIG
from obscura.model.handle import EADDRESS, EUINT8
from obscura.service.fhe.base import Cleartext, CryptoEngine
from obscura.service.fhe.context import create_openfhe_context, generate_keys
from obscura.service.fhe.polynomial import BABY_STEPS, centered, fold_coefficients, power_plan
from obscura.service.fhe.serialization import serialize_ciphertext, deserialize_ciphertext


class OpenFHEEngine(CryptoEngine):
    """
    Single-key BFV engine.

    euint8 values live in slot 0; eaddress values pack one byte per slot.
    (v mod m) + k is evaluated as the interpolation polynomial of that map over
    the 8-bit input domain, using baby-step / giant-step to keep depth at 9.
    """

    def __init__(self, cc=None, keypair=None, **kwargs):
        super().__init__(**kwargs)
        self.cc = cc if cc is not None else create_openfhe_context()
        self.keypair = keypair if keypair is not None else generate_keys(self.cc)
        self.plain_modulus = CRYPTO_CONFIG["plain_modulus"]
        self.batch_size = CRYPTO_CONFIG["batch_size"]
        self.input_bits = CRYPTO_CONFIG["input_bits"]
        self._constants: Dict[int, Any] = {}

    # ========================================================================
    # Encoding
    # ========================================================================

    def _pack(self, value_type: int, value: Cleartext) -> List[int]:
        if value_type == EADDRESS:
            raw = bytes.fromhex(str(value)[2:])
            if len(raw) > self.batch_size:
                raise ValueError(f"Identity longer than {self.batch_size} bytes")
            return list(raw) + [0] * (self.batch_size - len(raw))
        return [int(value)]

    def _constant(self, value: int):
        """Packed plaintext with `value` in every slot (a constant polynomial)"""
        value = centered(value, self.plain_modulus)
        if value not in self._constants:
            self._constants[value] = self.cc.MakePackedPlaintext([value] * self.batch_size)
        return self._constants[value]

    def _encrypt(self, value_type: int, value: Cleartext):
        plaintext = self.cc.MakePackedPlaintext(self._pack(value_type, value))
        return self.cc.Encrypt(self.keypair.publicKey, plaintext)

    def _sample(self, low: int, high: int):
        return self._encrypt(EUINT8, self._uniform(low, high))

    def _serialize(self, ciphertext) -> str:
        return serialize_ciphertext(ciphertext)

    def _ingest(self, ciphertext_b64: str):
        return deserialize_ciphertext(ciphertext_b64)

    def _decrypt(self, value_type: int, ciphertext) -> Cleartext:
        plaintext = self.cc.Decrypt(ciphertext, self.keypair.secretKey)
        plaintext.SetLength(self.batch_size)
        slots = [v % self.plain_modulus for v in plaintext.GetPackedValue()]
        if value_type == EADDRESS:
            return "0x" + bytes(slots).hex()
        return slots[0]

    # ========================================================================
    # Homomorphic fold
    # ========================================================================

    def _powers(self, base, limit: int) -> Dict[int, Any]:
        powers = {1: base}
        for exponent, left, right in power_plan(limit):
            powers[exponent] = self.cc.EvalMult(powers[left], powers[right])
        return powers

    def _linear_combination(self, powers: Dict[int, Any], coefficients) -> Any:
        """c0 + sum(c_i * x^i) for one baby-step block"""
        acc = self._encrypt(EUINT8, 0)
        for exponent, coefficient in enumerate(coefficients):
            if exponent == 0 or coefficient == 0:
                continue
            term = self.cc.EvalMult(powers[exponent], self._constant(coefficient))
            acc = self.cc.EvalAdd(acc, term)
        if coefficients[0]:
            acc = self.cc.EvalAdd(acc, self._constant(coefficients[0]))
        return acc

    def _add_modulo(self, ciphertext, modulus: int, offset: int):
        coefficients = fold_coefficients(modulus, offset, self.input_bits, self.plain_modulus)
        giant_steps = len(coefficients) // BABY_STEPS

        baby = self._powers(ciphertext, BABY_STEPS)
        giant = self._powers(baby[BABY_STEPS], giant_steps - 1)

        result = None
        for j in range(giant_steps):
            block = coefficients[j * BABY_STEPS:(j + 1) * BABY_STEPS]
            if not any(block):
                continue
            inner = self._linear_combination(baby, block)
            term = inner if j == 0 else self.cc.EvalMult(inner, giant[j])
            result = term if result is None else self.cc.EvalAdd(result, term)

        return result if result is not None else self._encrypt(EUINT8, 0)
