from __future__ import annotations

import time

import pytest

from obscura.errors import (
    AuthorizationExpired,
    InvalidSignature,
    MalformedHandle,
    Unauthorized,
)
from obscura.model.handle import EUINT8, ZERO_HANDLE, derive_handle
from obscura.service.relay.authorization import (
    SECONDS_PER_DAY,
    build_authorization,
    generate_keypair,
    open_cleartext,
    possession_proof,
    sign_authorization,
)

from conftest import OTHER_CONTEXT, TEST_CONTEXT


def signed_request(relay, signing_key, identity, pairs, contracts=(TEST_CONTEXT,),
                   start=None, days=10, keypair=None):
    """Build the keyword arguments of RelayService.user_decrypt the way a client would"""
    keypair = keypair or generate_keypair()
    start = int(time.time()) if start is None else start
    message = build_authorization(keypair.public_key, list(contracts), start, days)
    request = dict(
        handle_contract_pairs=list(pairs),
        public_key=keypair.public_key,
        possession_proof=possession_proof(keypair.private_key, relay.public_key, message.digest()),
        signature=sign_authorization(message, signing_key),
        contract_addresses=list(contracts),
        user_address=identity,
        start_timestamp=start,
        duration_days=days,
    )
    return request, keypair


def test_holder_decrypts_own_position(ledger, relay, engine, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, y_handle = ledger.get_position(alice)
    request, keypair = signed_request(relay, alice_key, alice, [(x_handle, TEST_CONTEXT), (y_handle, TEST_CONTEXT)])

    sealed = relay.user_decrypt(**request)

    assert set(sealed) == {x_handle, y_handle}
    assert open_cleartext(sealed[x_handle], keypair.private_key) == engine.decrypt(x_handle)
    assert 1 <= open_cleartext(sealed[y_handle], keypair.private_key) <= 9


def test_results_are_sealed_to_the_ephemeral_key(ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    request, _ = signed_request(relay, alice_key, alice, [(x_handle, TEST_CONTEXT)])

    sealed = relay.user_decrypt(**request)

    with pytest.raises(Exception):
        open_cleartext(sealed[x_handle], generate_keypair().private_key)


def test_other_holder_is_refused_and_nothing_is_decrypted(ledger, relay, engine, alice, bob_key, bob) -> None:
    ledger.join(alice)
    ledger.join(bob)
    x_handle, _ = ledger.get_position(alice)
    request, _ = signed_request(relay, bob_key, bob, [(x_handle, TEST_CONTEXT)])
    calls = engine.decrypt_calls

    with pytest.raises(Unauthorized):
        relay.user_decrypt(**request)
    assert engine.decrypt_calls == calls


def test_one_bad_handle_rejects_whole_request(ledger, relay, engine, alice_key, alice, bob) -> None:
    ledger.join(alice)
    ledger.join(bob)
    own_x, own_y = ledger.get_position(alice)
    bobs_x, _ = ledger.get_position(bob)
    request, _ = signed_request(
        relay, alice_key, alice,
        [(own_x, TEST_CONTEXT), (bobs_x, TEST_CONTEXT), (own_y, TEST_CONTEXT)],
    )
    calls = engine.decrypt_calls

    with pytest.raises(Unauthorized):
        relay.user_decrypt(**request)
    assert engine.decrypt_calls == calls


def test_expired_window_is_refused(ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    start = 1_700_000_000
    request, _ = signed_request(relay, alice_key, alice, [(x_handle, TEST_CONTEXT)], start=start, days=10)

    with pytest.raises(AuthorizationExpired):
        relay.user_decrypt(**request, now=start + 11 * SECONDS_PER_DAY)

    # the same request is accepted inside its window
    assert x_handle in relay.user_decrypt(**request, now=start + SECONDS_PER_DAY)


def test_pair_outside_signed_scope_is_refused(ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    request, _ = signed_request(relay, alice_key, alice, [(x_handle, OTHER_CONTEXT)], contracts=(TEST_CONTEXT,))

    with pytest.raises(Unauthorized):
        relay.user_decrypt(**request)


def test_grant_in_another_context_does_not_transfer(ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    request, _ = signed_request(relay, alice_key, alice, [(x_handle, OTHER_CONTEXT)], contracts=(OTHER_CONTEXT,))

    with pytest.raises(Unauthorized):
        relay.user_decrypt(**request)


def test_signature_bound_to_claimed_identity(ledger, relay, alice_key, alice, bob_key) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    # bob signs but claims to be alice
    request, _ = signed_request(relay, bob_key, alice, [(x_handle, TEST_CONTEXT)])

    with pytest.raises(InvalidSignature):
        relay.user_decrypt(**request)


def test_tampered_duration_invalidates_signature(ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    request, _ = signed_request(relay, alice_key, alice, [(x_handle, TEST_CONTEXT)], days=1)
    request["duration_days"] = 365

    with pytest.raises(InvalidSignature):
        relay.user_decrypt(**request)


def test_public_key_swap_fails_possession_check(ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    x_handle, _ = ledger.get_position(alice)
    attacker = generate_keypair()
    request, _ = signed_request(relay, alice_key, alice, [(x_handle, TEST_CONTEXT)])
    request["possession_proof"] = possession_proof(attacker.private_key, relay.public_key, b"\x00" * 32)

    with pytest.raises(Unauthorized):
        relay.user_decrypt(**request)


@pytest.mark.parametrize("handle", ["0x1234", ZERO_HANDLE, derive_handle(TEST_CONTEXT, 999, EUINT8, 0)])
def test_unknown_or_malformed_handle(ledger, relay, alice_key, alice, handle) -> None:
    ledger.join(alice)
    request, _ = signed_request(relay, alice_key, alice, [(handle, TEST_CONTEXT)])

    with pytest.raises(MalformedHandle):
        relay.user_decrypt(**request)


def test_empty_request_is_refused(relay, alice_key, alice) -> None:
    request, _ = signed_request(relay, alice_key, alice, [])
    with pytest.raises(Unauthorized):
        relay.user_decrypt(**request)
    with pytest.raises(Unauthorized):
        relay.public_decrypt([])


def test_public_decrypt_requires_disclosure(ledger, relay, engine, alice) -> None:
    ledger.join(alice)
    identity_handle = ledger.get_identity_handle(alice)
    calls = engine.decrypt_calls

    with pytest.raises(Unauthorized):
        relay.public_decrypt([identity_handle])
    assert engine.decrypt_calls == calls

    ledger.disclose(alice)
    assert relay.public_decrypt([identity_handle]) == {identity_handle: alice.lower()}


def test_public_decrypt_is_all_or_reject(ledger, relay, engine, alice, bob) -> None:
    ledger.join(alice)
    ledger.join(bob)
    ledger.disclose(alice)
    handles = [ledger.get_identity_handle(alice), ledger.get_identity_handle(bob)]
    calls = engine.decrypt_calls

    with pytest.raises(Unauthorized):
        relay.public_decrypt(handles)
    assert engine.decrypt_calls == calls


def test_position_handles_stay_private_after_disclose(ledger, relay, alice) -> None:
    ledger.join(alice)
    ledger.disclose(alice)
    x_handle, _ = ledger.get_position(alice)

    with pytest.raises(Unauthorized):
        relay.public_decrypt([x_handle])


def test_relay_never_mutates_ledger(ledger, relay, alice_key, alice) -> None:
    ledger.join(alice)
    ledger.disclose(alice)
    x_handle, y_handle = ledger.get_position(alice)
    commits = list(ledger.commits)
    request, _ = signed_request(relay, alice_key, alice, [(x_handle, TEST_CONTEXT)])

    relay.user_decrypt(**request)
    relay.public_decrypt([ledger.get_identity_handle(alice)])

    assert ledger.get_position(alice) == (x_handle, y_handle)
    assert ledger.commits == commits
