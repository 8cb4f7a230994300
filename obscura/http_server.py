"""
HTTP Server for the Decryption Relay - User & Public Decrypt Endpoints
"""
from typing import List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from obscura.errors import (
    AuthorizationExpired,
    DecryptionError,
    MalformedHandle,
    Unauthorized,
)
from obscura.service.relay.service import RelayService

app = FastAPI(title="Obscura Decryption Relay")


# Global state - set by ObscuraNode
class ServerState:
    def __init__(self):
        self.relay: Optional[RelayService] = None

state = ServerState()


def initialize_server(relay: RelayService):
    """Initialize server with the relay service"""
    state.relay = relay


def _relay() -> RelayService:
    if state.relay is None:
        raise HTTPException(status_code=503, detail="Relay not initialized")
    return state.relay


# ============================================================================
# Request Models
# ============================================================================

class HandleContractPair(BaseModel):
    handle: str
    contract_address: str


class UserDecryptRequest(BaseModel):
    """Signed user decryption request (ephemeral private key is never sent)"""
    handle_contract_pairs: List[HandleContractPair]
    public_key: str  # Hex X25519 ephemeral public key
    possession_proof: str  # Hex Box(ephemeral_sk, relay_pk) over the authorization digest
    signature: str  # Hex Ed25519 signature over the authorization digest
    contract_addresses: List[str]
    user_address: str
    start_timestamp: int
    duration_days: int


class PublicDecryptRequest(BaseModel):
    handles: List[str]


# ============================================================================
# Error Mapping
# ============================================================================

def status_for(error: DecryptionError) -> int:
    if isinstance(error, AuthorizationExpired):
        return 401
    if isinstance(error, Unauthorized):
        return 403
    if isinstance(error, MalformedHandle):
        return 400
    return 500


@app.exception_handler(DecryptionError)
async def decryption_error_handler(request: Request, exc: DecryptionError):
    print(f"[HTTP] ❌ {request.url.path} rejected: {exc.kind}: {exc}")
    return JSONResponse(status_code=status_for(exc), content={"error": exc.kind, "detail": str(exc)})


# ============================================================================
# Routes
# ============================================================================

@app.get("/health")
def health():
    return {"status": "ok", "ready": state.relay is not None}


@app.get("/relay_key")
def relay_key():
    """Relay X25519 public key used for ephemeral key possession proofs"""
    return {"public_key": _relay().public_key}


@app.post("/user_decrypt")
def user_decrypt(request: UserDecryptRequest):
    """
    Decrypt handles the signer is granted, sealed to its ephemeral key.
    Runs in the threadpool so slow engine decryptions don't block the loop.
    """
    pairs: List[Tuple[str, str]] = [(p.handle, p.contract_address) for p in request.handle_contract_pairs]
    results = _relay().user_decrypt(
        pairs,
        public_key=request.public_key,
        possession_proof=request.possession_proof,
        signature=request.signature,
        contract_addresses=request.contract_addresses,
        user_address=request.user_address,
        start_timestamp=request.start_timestamp,
        duration_days=request.duration_days,
    )
    return {"results": results}


@app.post("/public_decrypt")
def public_decrypt(request: PublicDecryptRequest):
    """Decrypt handles that carry a public grant"""
    return {"results": _relay().public_decrypt(request.handles)}
