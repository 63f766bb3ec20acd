"""
Tests for payload models and display formatting.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import CREATOR, TOKEN, holder_item, transfer_item
from onchain_stats.exceptions import InvalidAddressError, MetadataUnavailableError
from onchain_stats.formatting import (
    format_currency,
    format_number,
    format_pct,
    shorten_address,
    to_json_safe,
    to_units,
)
from onchain_stats.models import (
    Holder,
    LiquidityPair,
    PageWalk,
    StatResult,
    StopReason,
    TokenMetadata,
    TransferEvent,
    normalize_address,
    parse_float,
    parse_int,
    parse_timestamp,
)


# ============================================================
# PARSING HELPERS
# ============================================================

class TestParsing:
    """Tests for address, integer and timestamp parsing."""

    def test_normalize_address_lowercases(self):
        mixed = "0x" + "A" * 40

        assert normalize_address(f"  {mixed} ") == TOKEN

    @pytest.mark.parametrize("bad", [None, 42, "", "0x1234", "aaaa" * 10, "0x" + "g" * 40])
    def test_normalize_address_rejects(self, bad):
        with pytest.raises(InvalidAddressError):
            normalize_address(bad)

    @pytest.mark.parametrize("raw,expected", [
        ("123456789012345678901234567890", 123456789012345678901234567890),
        (" 42 ", 42),
        (7, 7),
        ("-5", -5),
        ("1.5", None),
        ("abc", None),
        (True, None),
        (None, None),
    ])
    def test_parse_int(self, raw, expected):
        assert parse_int(raw) == expected

    def test_parse_timestamp_zulu(self):
        parsed = parse_timestamp("2026-01-15T12:00:00.000000Z")

        assert parsed == datetime(2026, 1, 15, 12, tzinfo=timezone.utc)

    def test_parse_timestamp_naive_is_utc(self):
        assert parse_timestamp("2026-01-15T12:00:00").tzinfo is not None

    @pytest.mark.parametrize("bad", [None, "", "yesterday", 1700000000])
    def test_parse_timestamp_invalid(self, bad):
        assert parse_timestamp(bad) is None


# ============================================================
# PAYLOAD MODELS
# ============================================================

class TestPayloadModels:
    """Tests for typed views over explorer items."""

    def test_holder_from_api(self):
        holder = Holder.from_api(holder_item(CREATOR.upper().replace("0X", "0x"), 10 ** 30))

        assert holder == Holder(address=CREATOR, raw_balance=10 ** 30)

    def test_holder_without_value_dropped(self):
        assert Holder.from_api({"address": {"hash": CREATOR}}) is None
        assert Holder.from_api("not a dict") is None

    def test_transfer_from_api(self):
        ts = datetime(2026, 1, 15, 11, tzinfo=timezone.utc)
        event = TransferEvent.from_api(transfer_item(ts, CREATOR, TOKEN, 500, tx_hash="0xabc"))

        assert event.timestamp == ts
        assert event.from_address == CREATOR
        assert event.to_address == TOKEN
        assert event.raw_value == 500
        assert event.tx_hash == "0xabc"
        assert event.to_dict()["raw_value"] == "500"

    def test_transfer_without_timestamp_dropped(self):
        assert TransferEvent.from_api({"from": {"hash": CREATOR}}) is None

    def test_negative_amounts_dropped(self):
        ts = datetime(2026, 1, 15, 11, tzinfo=timezone.utc)
        item = transfer_item(ts, CREATOR, TOKEN, 0)
        item["total"]["value"] = "-5"

        assert Holder.from_api(holder_item(CREATOR, -5)) is None
        assert TransferEvent.from_api(item) is None

    def test_pair_with_malformed_nested_fields(self):
        pair = LiquidityPair.from_api({
            "dexId": "pulsex",
            "pairAddress": "0xPAIR",
            "baseToken": "TEST",
            "quoteToken": None,
            "liquidity": "n/a",
            "volume": [1, 2],
            "txns": {"h24": "many"},
            "priceChange": 7,
            "info": {"imageUrl": 42},
            "priceUsd": "inf",
        })

        assert pair.base_token_address == ""
        assert pair.liquidity_usd == 0.0
        assert pair.buy_count_24h == 0
        assert pair.price_change_h24 is None
        assert pair.image_url is None
        assert pair.price_usd == 0.0

    @pytest.mark.parametrize("raw,expected", [
        ("1.5", 1.5),
        ("nan", 0.0),
        ("-inf", 0.0),
        ({"usd": 1}, 0.0),
    ])
    def test_parse_float(self, raw, expected):
        assert parse_float(raw) == expected


class TestTokenMetadata:
    """Tests for TokenMetadata.from_core."""

    def test_complete(self):
        meta = TokenMetadata.from_core(
            TOKEN,
            {"decimals": "18", "total_supply": "1000", "symbol": "TST", "holders": "9"},
            {"token_holders_count": "12", "transfers_count": "40"},
            {"creator_address_hash": CREATOR.upper().replace("0X", "0x"), "creation_tx_hash": "0x1"},
        )

        assert meta.decimals == 18
        assert meta.total_supply_raw == 1000
        assert meta.holders_count_reported == 12
        assert meta.transfers_count_reported == 40
        assert meta.creator_address == CREATOR
        assert meta.creation_tx_hash == "0x1"

    def test_holders_fallback_to_token_info(self):
        meta = TokenMetadata.from_core(TOKEN, {"decimals": "0", "total_supply": "5", "holders": "9"})

        assert meta.holders_count_reported == 9
        assert meta.transfers_count_reported is None
        assert meta.creator_address is None

    def test_missing_decimals_fails_closed(self):
        with pytest.raises(MetadataUnavailableError) as exc_info:
            TokenMetadata.from_core(TOKEN, {"total_supply": "5"})

        assert exc_info.value.missing_fields == ["decimals"]

    def test_missing_token_info(self):
        with pytest.raises(MetadataUnavailableError):
            TokenMetadata.from_core(TOKEN, None)


# ============================================================
# FORMATTING
# ============================================================

class TestFormatting:
    """Tests for display helpers."""

    def test_to_units(self):
        assert to_units(123456, 4) == Decimal("12.3456")
        assert to_units(10 ** 40, 18) == Decimal(10 ** 22)
        assert to_units(7, 0) == Decimal(7)

    @pytest.mark.parametrize("value,expected", [
        (1234567.891, "1,234,567.89"),
        (1000, "1,000"),
        (0.5, "0.5"),
        (None, "N/A"),
        (float("inf"), "∞"),
    ])
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    def test_format_pct(self):
        assert format_pct(12.3456) == "12.35%"
        assert format_pct(float("inf")) == "∞%"
        assert format_pct(None) == "N/A"

    def test_format_currency(self):
        assert format_currency(1500.256) == "$1,500.26"
        assert format_currency(None) == "N/A"

    def test_shorten_address(self):
        assert shorten_address(CREATOR) == "0xcccc...cccc"
        assert shorten_address(None) == "N/A"


class TestJsonSafe:
    """Tests for to_json_safe and StatResult.to_dict."""

    def test_non_finite_floats(self):
        assert to_json_safe(float("inf")) == "Infinity"
        assert to_json_safe(float("-inf")) == "-Infinity"
        assert to_json_safe(float("nan")) == "NaN"

    def test_large_ints_become_strings(self):
        assert to_json_safe(2 ** 53 - 1) == 2 ** 53 - 1
        assert to_json_safe(10 ** 30) == str(10 ** 30)

    def test_nested(self):
        data = to_json_safe({"ratio": float("inf"), "items": (Decimal("1.5"), StopReason.EXHAUSTED)})

        assert data == {"ratio": "Infinity", "items": ["1.5", "exhausted"]}

    def test_stat_result_to_dict(self):
        result = StatResult(
            stat_id="holder_to_liquidity_ratio",
            value=float("inf"),
            display="∞",
            source="explorer+dexscreener",
        )

        data = result.to_dict()

        assert data["value"] == "Infinity"
        assert data["error"] is None
        assert result.ok

    def test_page_walk_truncated(self):
        assert PageWalk(stop_reason=StopReason.MAX_PAGES).truncated
        assert not PageWalk(stop_reason=StopReason.EARLY_STOP).truncated
