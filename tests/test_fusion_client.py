#!/usr/bin/env python3
"""
FusionPlusClient tests against an httpx.MockTransport.

Checks request shapes for each endpoint and the mapping of HTTP failures
to ExchangeError.
"""

import sys
import os
import json
import unittest

import httpx
from eth_account import Account

# Add package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from fusionswap.core import OrderState, PresetName, OP_TO_ARB, ARB_TO_OP
from fusionswap.errors import ExchangeError, SubmissionFailed
from fusionswap.exchange.fusion import FusionPlusClient, LocalAccountSigner, OrderSigner
from fusionswap.exchange.models import TakingFee
from fusionswap.htlc.hashlock import CommitmentBuilder
from fusionswap.htlc.secrets import SecretVault
from fusionswap.swap.coordinator import SwapOrderCoordinator

BASE_URL = "https://api.test/fusion-plus"
ORDER_HASH = "0x" + "cd" * 32
WALLET = "0x" + "22" * 20

QUOTE_RESPONSE = {
    "quoteId": "quote-42",
    "srcTokenAmount": "500000000000000",
    "dstTokenAmount": "1700000",
    "recommendedPreset": "fast",
    "srcEscrowFactory": "0x" + "33" * 20,
    "presets": {
        "fast": {"auctionDuration": 180, "secretsCount": 1, "allowPartialFills": False,
                 "allowMultipleFills": False, "gasCost": {"gasBumpEstimate": 0}},
        "medium": {"auctionDuration": 360, "secretsCount": 4, "allowPartialFills": True,
                   "allowMultipleFills": True},
        "custom": None,
    },
    "timeLocks": {"srcWithdrawal": 36},
}


class FakeSigner(OrderSigner):
    address = WALLET

    def __init__(self):
        self.signed = []

    def sign_typed_data(self, typed_data):
        self.signed.append(typed_data)
        return "0x" + "ee" * 65


class Recorder:
    """
    MockTransport handler that records requests and replays responses by path.

    A route maps to a Response, an exception to raise, or a callable
    taking the request.
    """

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for prefix, response in self.routes.items():
            if request.url.path.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response(request)
                return response
        return httpx.Response(404, json={"error": "not found"})


def make_client(routes, signer=None, source="test-app"):
    recorder = Recorder(routes)
    http = httpx.Client(
        base_url=BASE_URL,
        transport=httpx.MockTransport(recorder),
        headers={"Authorization": "Bearer test-key"},
    )
    client = FusionPlusClient("test-key", signer=signer, source=source, http_client=http)
    return client, recorder


class TestQuote(unittest.TestCase):

    def test_get_quote(self):
        client, recorder = make_client({
            "/fusion-plus/quoter/v1.0/quote/receive": httpx.Response(200, json=QUOTE_RESPONSE),
        })

        quote = client.get_quote(OP_TO_ARB, 500000000000000, WALLET)

        self.assertEqual(quote.quote_id, "quote-42")
        self.assertEqual(quote.get_preset().secrets_count, 1)
        self.assertEqual(quote.get_preset(PresetName.MEDIUM).secrets_count, 4)
        self.assertEqual(quote.src_chain_id, 10)
        self.assertEqual(quote.dst_chain_id, 42161)

        params = recorder.requests[0].url.params
        self.assertEqual(params["srcChain"], "10")
        self.assertEqual(params["dstChain"], "42161")
        self.assertEqual(params["srcTokenAddress"], OP_TO_ARB.src_token)
        self.assertEqual(params["dstTokenAddress"], OP_TO_ARB.dst_token)
        self.assertEqual(params["amount"], "500000000000000")
        self.assertEqual(params["walletAddress"], WALLET)
        self.assertEqual(params["enableEstimate"], "true")
        self.assertEqual(recorder.requests[0].headers["Authorization"], "Bearer test-key")

    def test_missing_custom_preset(self):
        client, _ = make_client({
            "/fusion-plus/quoter/v1.0/quote/receive": httpx.Response(200, json=QUOTE_RESPONSE),
        })
        quote = client.get_quote(ARB_TO_OP, 500000, WALLET)
        with self.assertRaises(KeyError):
            quote.get_preset(PresetName.CUSTOM)

    def test_quote_keeps_unknown_fields(self):
        client, _ = make_client({
            "/fusion-plus/quoter/v1.0/quote/receive": httpx.Response(200, json=QUOTE_RESPONSE),
        })
        wire = client.get_quote(OP_TO_ARB, 1, WALLET).to_wire()
        self.assertEqual(wire["timeLocks"], {"srcWithdrawal": 36})
        self.assertEqual(wire["quoteId"], "quote-42")
        self.assertNotIn("request", wire)

    def test_malformed_quote(self):
        client, _ = make_client({
            "/fusion-plus/quoter/v1.0/quote/receive": httpx.Response(200, json={"quoteId": "x"}),
        })
        with self.assertRaises(ExchangeError) as ctx:
            client.get_quote(OP_TO_ARB, 1, WALLET)
        self.assertFalse(ctx.exception.retryable)


class TestSubmitOrder(unittest.TestCase):

    def setUp(self):
        self.signer = FakeSigner()
        self.typed_data = {
            "types": {"Order": []},
            "primaryType": "Order",
            "domain": {"name": "1inch Aggregation Router", "chainId": 10},
            "message": {"salt": "1", "maker": WALLET, "makingAmount": "500000000000000"},
        }
        self.client, self.recorder = make_client({
            "/fusion-plus/quoter/v1.0/quote/receive": httpx.Response(200, json=QUOTE_RESPONSE),
            "/fusion-plus/quoter/v1.0/quote/build": self.build_response,
            "/fusion-plus/relayer/v1.0/submit": httpx.Response(201),
        }, signer=self.signer)
        self.quote = self.client.get_quote(OP_TO_ARB, 500000000000000, WALLET)

    def build_response(self, request):
        """Quote builder that embeds the requested hash lock in the extension."""
        hash_lock = json.loads(request.content)["hashLock"]
        return httpx.Response(200, json={
            "orderHash": ORDER_HASH,
            "typedData": self.typed_data,
            "extension": "0x" + "01" * 20 + hash_lock[2:],
        })

    def test_multi_fill_order(self):
        vault = SecretVault.generate(4)
        hash_lock = CommitmentBuilder().build(vault.fills)
        fee = TakingFee(taking_fee_bps=100, taking_fee_receiver="0x" + "00" * 20)

        order = self.client.submit_order(
            self.quote, WALLET, hash_lock, vault.secret_hashes, PresetName.MEDIUM, fee,
        )

        self.assertEqual(order.order_hash, ORDER_HASH)
        self.assertEqual(order.quote_id, "quote-42")
        self.assertEqual(self.signer.signed, [self.typed_data])

        build = self.recorder.requests[1]
        self.assertEqual(build.method, "POST")
        self.assertEqual(build.url.params["preset"], "medium")
        self.assertEqual(build.url.params["source"], "test-app")
        self.assertEqual(build.url.params["fee"], "100")
        build_body = json.loads(build.content)
        self.assertEqual(build_body["hashLock"], hash_lock.to_hex())
        self.assertEqual(build_body["secretsHashList"], vault.secret_hashes)
        self.assertEqual(build_body["quote"]["quoteId"], "quote-42")

        submit = self.recorder.requests[2]
        body = json.loads(submit.content)
        self.assertEqual(body["order"], self.typed_data["message"])
        self.assertEqual(body["srcChainId"], 10)
        self.assertEqual(body["signature"], "0x" + "ee" * 65)
        self.assertEqual(body["extension"], "0x" + "01" * 20 + hash_lock.to_hex()[2:])
        self.assertEqual(body["quoteId"], "quote-42")
        self.assertEqual(body["secretHashes"], vault.secret_hashes)

    def test_single_fill_order_omits_secret_hashes(self):
        vault = SecretVault.generate(1)
        hash_lock = CommitmentBuilder().build(vault.fills)

        self.client.submit_order(self.quote, WALLET, hash_lock, vault.secret_hashes, PresetName.FAST)

        body = json.loads(self.recorder.requests[-1].content)
        self.assertNotIn("secretHashes", body)
        self.assertNotIn("fee", self.recorder.requests[1].url.params)

    def test_no_signer(self):
        client, _ = make_client({})
        vault = SecretVault.generate(1)
        with self.assertRaises(ExchangeError):
            client.submit_order(self.quote, WALLET, CommitmentBuilder().build(vault.fills),
                                vault.secret_hashes, PresetName.FAST)

    def test_built_order_without_hash_lock(self):
        self.client, self.recorder = make_client({
            "/fusion-plus/quoter/v1.0/quote/build": httpx.Response(200, json={
                "orderHash": ORDER_HASH,
                "typedData": self.typed_data,
                "extension": "0x" + "01" * 64,
            }),
            "/fusion-plus/relayer/v1.0/submit": httpx.Response(201),
        }, signer=self.signer)
        vault = SecretVault.generate(2)

        with self.assertRaises(ExchangeError) as ctx:
            self.client.submit_order(self.quote, WALLET, CommitmentBuilder().build(vault.fills),
                                     vault.secret_hashes, PresetName.MEDIUM)

        self.assertFalse(ctx.exception.retryable)
        self.assertEqual(self.signer.signed, [])
        self.assertEqual(len(self.recorder.requests), 1)

    def test_signing_failure(self):
        """Typed data the signer cannot encode surfaces as ExchangeError."""
        self.typed_data = {"message": {}}
        client, recorder = make_client({
            "/fusion-plus/quoter/v1.0/quote/build": self.build_response,
            "/fusion-plus/relayer/v1.0/submit": httpx.Response(201),
        }, signer=LocalAccountSigner("0x" + "4c" * 32))
        vault = SecretVault.generate(1)

        with self.assertRaises(ExchangeError) as ctx:
            client.submit_order(self.quote, WALLET, CommitmentBuilder().build(vault.fills),
                                vault.secret_hashes, PresetName.FAST)

        self.assertFalse(ctx.exception.retryable)
        self.assertIsNotNone(ctx.exception.__cause__)
        self.assertEqual(len(recorder.requests), 1)

        coordinator = SwapOrderCoordinator(client, WALLET)
        session = coordinator.commit(OP_TO_ARB, self.quote)
        with self.assertRaises(SubmissionFailed):
            coordinator.submit(session)
        self.assertTrue(session.vault.released)

    def test_signer_is_abstract(self):
        with self.assertRaises(TypeError):
            OrderSigner()


class TestSecretsAndStatus(unittest.TestCase):

    def test_ready_fills(self):
        client, recorder = make_client({
            "/fusion-plus/orders/v1.0/order/ready-to-accept-secret-fills/": httpx.Response(200, json={
                "fills": [
                    {"idx": 0, "srcEscrowDeployTxHash": "0x01", "dstEscrowDeployTxHash": "0x02"},
                    {"idx": 2, "srcEscrowDeployTxHash": "0x03", "dstEscrowDeployTxHash": "0x04"},
                ],
            }),
        })
        self.assertEqual(client.get_ready_to_accept_secret_fills(ORDER_HASH), [0, 2])
        self.assertTrue(recorder.requests[0].url.path.endswith(ORDER_HASH))

    def test_no_ready_fills(self):
        client, _ = make_client({
            "/fusion-plus/orders/v1.0/order/ready-to-accept-secret-fills/": httpx.Response(200, json={"fills": []}),
        })
        self.assertEqual(client.get_ready_to_accept_secret_fills(ORDER_HASH), [])

    def test_submit_secret(self):
        client, recorder = make_client({
            "/fusion-plus/relayer/v1.0/submit/secret": httpx.Response(201),
        })
        client.submit_secret(ORDER_HASH, "0x" + "99" * 32)

        body = json.loads(recorder.requests[0].content)
        self.assertEqual(body, {"orderHash": ORDER_HASH, "secret": "0x" + "99" * 32})

    def test_order_status(self):
        for wire, expected in (("pending", OrderState.PENDING),
                               ("executed", OrderState.EXECUTED),
                               ("expired", OrderState.EXPIRED),
                               ("refunded", OrderState.REFUNDED),
                               ("refunding", OrderState.REFUNDING),
                               ("something-new", OrderState.PENDING)):
            client, _ = make_client({
                "/fusion-plus/orders/v1.0/order/status/": httpx.Response(200, json={
                    "orderHash": ORDER_HASH, "status": wire,
                }),
            })
            self.assertIs(client.get_order_status(ORDER_HASH), expected, wire)


class TestErrorMapping(unittest.TestCase):

    def _status_client(self, response):
        client, _ = make_client({"/fusion-plus/orders/v1.0/order/status/": response})
        return client

    def test_server_error_retryable(self):
        client = self._status_client(httpx.Response(503, text="unavailable"))
        with self.assertRaises(ExchangeError) as ctx:
            client.get_order_status(ORDER_HASH)
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(ctx.exception.status_code, 503)

    def test_rate_limit_retryable(self):
        client = self._status_client(httpx.Response(429))
        with self.assertRaises(ExchangeError) as ctx:
            client.get_order_status(ORDER_HASH)
        self.assertTrue(ctx.exception.retryable)

    def test_client_error_not_retryable(self):
        client = self._status_client(httpx.Response(400, json={"description": "bad hash"}))
        with self.assertRaises(ExchangeError) as ctx:
            client.get_order_status(ORDER_HASH)
        self.assertFalse(ctx.exception.retryable)
        self.assertEqual(ctx.exception.status_code, 400)

    def test_transport_error(self):
        client = self._status_client(httpx.ConnectError("connection refused"))
        with self.assertRaises(ExchangeError) as ctx:
            client.get_order_status(ORDER_HASH)
        self.assertTrue(ctx.exception.retryable)
        self.assertIsInstance(ctx.exception.__cause__, httpx.ConnectError)

    def test_invalid_json(self):
        client = self._status_client(httpx.Response(200, text="<html>"))
        with self.assertRaises(ExchangeError):
            client.get_order_status(ORDER_HASH)


class TestLocalAccountSigner(unittest.TestCase):

    def test_address_from_key(self):
        key = "0x" + "4c" * 32
        signer = LocalAccountSigner(key)
        self.assertEqual(signer.address, Account.from_key(key).address)
        self.assertNotIn("4c4c", repr(signer))


class TestOrderStateParse(unittest.TestCase):

    def test_terminal_set(self):
        terminal = {s for s in OrderState if s.is_terminal}
        self.assertEqual(terminal, {OrderState.EXECUTED, OrderState.EXPIRED, OrderState.REFUNDED})

    def test_spellings(self):
        self.assertIs(OrderState.parse("PartiallyFilled"), OrderState.PARTIALLY_FILLED)
        self.assertIs(OrderState.parse("partially-filled"), OrderState.PARTIALLY_FILLED)
        self.assertIs(OrderState.parse("EXECUTED"), OrderState.EXECUTED)


if __name__ == "__main__":
    unittest.main()
