from openfhe import *

from obscura.config import CRYPTO_CONFIG


# ============================================================================
# OpenFHE Context & Parameters
# ============================================================================

def create_openfhe_context(
    plain_modulus: int = CRYPTO_CONFIG["plain_modulus"],
    batch_size: int = CRYPTO_CONFIG["batch_size"],
    multiplicative_depth: int = CRYPTO_CONFIG["multiplicative_depth"],
):
    """
    Create BFVrns context for small integer operations.

    Args:
        plain_modulus: Prime plaintext modulus (slot arithmetic is mod this)
        batch_size: Packed slots per ciphertext, must be a power of 2
        multiplicative_depth: Depth budget for the fold polynomial

    Returns:
        OpenFHE CryptoContext with PKE and leveled SHE enabled
    """
    parameters = CCParamsBFVRNS()

    # Prime modulus so every function on the input domain is a polynomial
    parameters.SetPlaintextModulus(plain_modulus)

    # Batch size must be power of 2 for BFV
    parameters.SetBatchSize(batch_size)

    parameters.SetMultiplicativeDepth(multiplicative_depth)

    cc = GenCryptoContext(parameters)
    cc.Enable(PKESchemeFeature.PKE)
    cc.Enable(PKESchemeFeature.KEYSWITCH)
    cc.Enable(PKESchemeFeature.LEVELEDSHE)

    return cc


def generate_keys(cc):
    """
    Generate the engine keypair plus relinearization keys for EvalMult.

    Returns:
        KeyPair containing public and secret keys
    """
    keypair = cc.KeyGen()
    cc.EvalMultKeyGen(keypair.secretKey)
    return keypair
