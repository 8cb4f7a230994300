"""
Obscura Node - Hosts the encrypted ledger and the decryption relay
Wires the crypto engine, ledger and relay server together
"""
import asyncio
import threading
from typing import Optional

import uvicorn
from nacl.signing import SigningKey

from obscura.config import LEDGER_CONFIG, RELAY_CONFIG
from obscura.http_server import app, initialize_server
from obscura.ledger_logger import LedgerLogger
from obscura.service.fhe.base import CryptoEngine
from obscura.service.ledger import ObscuraLedger
from obscura.service.relay.decryption_service import DecryptionClient
from obscura.service.relay.network_client import RelayNetworkClient
from obscura.service.relay.service import RelayService


class ObscuraNode:
    """Main node - owns the engine, ledger and relay"""

    def __init__(self, engine: CryptoEngine, context: str = None, http_port: int = None):
        self.context = (context or LEDGER_CONFIG["context"]).lower()
        self.engine = engine

        self.logger = LedgerLogger(self.context)
        self.logger.log("Node started")
        self.ledger = ObscuraLedger(engine, self.context, logger=self.logger)
        self.relay = RelayService(engine, self.ledger.acl)

        # HTTP server
        self.http_port = http_port or RELAY_CONFIG["port"]
        self.http_address = f"http://localhost:{self.http_port}"
        self.http_server_thread: Optional[threading.Thread] = None

    def start_relay_server(self):
        """Start relay HTTP server in background thread"""
        initialize_server(self.relay)

        def run_server():
            uvicorn.run(app, host=RELAY_CONFIG["host"], port=self.http_port, log_level="warning")

        self.http_server_thread = threading.Thread(target=run_server, daemon=True)
        self.http_server_thread.start()
        print(f"[Node] Relay server started at {self.http_address}")

    def client_for(self, signing_key: SigningKey) -> DecryptionClient:
        return DecryptionClient(signing_key, RelayNetworkClient(self.http_address))


# ============================================================================
# Main Entry Point
# ============================================================================

async def wait_for_relay(network: RelayNetworkClient, attempts: int = 15) -> bool:
    for attempt in range(attempts):
        if await network.check_health():
            return True
        print(f"[Node] Relay not ready yet, retrying ({attempt + 1}/{attempts})...")
        await asyncio.sleep(1)
    return False


async def main():
    """Walk one player through join, decrypt, move, disclose and listing"""
    from obscura.service.fhe.openfhe_engine import OpenFHEEngine

    print("[Node] Building OpenFHE context (this takes a moment)...")
    node = ObscuraNode(OpenFHEEngine())
    node.start_relay_server()

    player_key = SigningKey.generate()
    client = node.client_for(player_key)
    if not await wait_for_relay(client.network):
        raise RuntimeError(f"Relay at {node.http_address} failed to start")

    node.logger.log_section("JOIN")
    node.ledger.join(client.identity)
    print(f"[Node] {client.identity[:10]}… joined, players={node.ledger.player_count()}")

    x, y = await client.decrypt_position(node.ledger)
    print(f"[Decrypt] Starting cell: ({x}, {y})")

    x_input = node.engine.encrypt_input(9, client.identity, node.context)
    y_input = node.engine.encrypt_input(1, client.identity, node.context)
    node.logger.log_section("MOVE")
    print("[Node] Moving (homomorphic fold, may take a while)...")
    node.ledger.move(client.identity, x_input, y_input)

    x, y = await client.decrypt_position(node.ledger)
    print(f"[Decrypt] After move: ({x}, {y})")

    node.logger.log_section("DISCLOSE")
    node.ledger.disclose(client.identity)
    for entry in await client.list_players(node.ledger):
        print(f"[Node] Player {entry['index']}: {entry['status']} {entry.get('public_address', entry['handle'])}")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
