from openfhe import *
import base64
import tempfile
import os

# ============================================================================
# Serialization (File-based for reliability)
# ============================================================================

def _serialize_to_base64(obj, serialize_func) -> str:
    """
    Helper: Serialize OpenFHE object to base64 string via temp file.
    """
    with tempfile.NamedTemporaryFile(delete=False, suffix='.bin') as f:
        temp_path = f.name

    try:
        result = serialize_func(temp_path)
        if not result:
            raise RuntimeError(f"Serialization failed for {type(obj)}")

        with open(temp_path, 'rb') as f:
            data = f.read()

        return base64.b64encode(data).decode('utf-8')
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)


def _deserialize_from_base64(b64_str: str, deserialize_func):
    """
    Helper: Deserialize OpenFHE object from base64 string via temp file.
    """
    data = base64.b64decode(b64_str, validate=True)

    with tempfile.NamedTemporaryFile(delete=False, suffix='.bin') as f:
        f.write(data)
        temp_path = f.name

    try:
        obj, success = deserialize_func(temp_path)
        if not success:
            raise RuntimeError("Deserialization failed")
        return obj
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)


def serialize_ciphertext(ciphertext) -> str:
    """
    Serialize ciphertext to base64 string.
    """
    return _serialize_to_base64(ciphertext, lambda path: SerializeToFile(path, ciphertext, BINARY))


def deserialize_ciphertext(ct_b64: str):
    """
    Deserialize ciphertext from base64 string.
    """
    return _deserialize_from_base64(ct_b64, lambda path: DeserializeCiphertext(path, BINARY))
