"""
Unit tests for quote math (unit conversion, slippage, validation, ranking)
"""

import unittest
from decimal import Decimal

import pytest

from helpers import SOL, USDC, make_quote

from jupiter_adapter.protocols.jupiter.quote_math import (
    bps_to_percentage,
    build_quote_params,
    classify_price_impact,
    compare_quotes,
    effective_price,
    ensure_price_impact_within,
    format_raw_amount,
    minimum_output,
    parse_display_amount,
    percentage_to_bps,
    recommended_slippage_bps,
    validate_quote_request,
)
from jupiter_adapter.types import PriceImpactSeverity, QuoteRequest, SwapMode
from jupiter_adapter.errors import ErrorCode, InvalidRequest


class TestBasisPoints(unittest.TestCase):

    def test_percentage_to_bps(self):
        self.assertEqual(percentage_to_bps(0.5), 50)
        self.assertEqual(percentage_to_bps("1"), 100)
        self.assertEqual(percentage_to_bps(Decimal("0.125")), 13)

    def test_bps_to_percentage(self):
        self.assertEqual(bps_to_percentage(50), 0.5)
        self.assertEqual(bps_to_percentage(10_000), 100.0)

    def test_fractional_bps_are_lost(self):
        """0.004% is 0.4 bps and rounds away"""
        self.assertEqual(bps_to_percentage(percentage_to_bps("0.004")), 0.0)

    def test_not_a_number(self):
        with self.assertRaises(InvalidRequest):
            percentage_to_bps("abc")


class TestAmountFormatting(unittest.TestCase):

    def test_format_trims_trailing_zeros(self):
        self.assertEqual(format_raw_amount(1_500_000, 6), "1.5")
        self.assertEqual(format_raw_amount("1000000000", 9), "1")

    def test_format_small_amount(self):
        self.assertEqual(format_raw_amount(1, 9), "0.000000001")
        self.assertEqual(format_raw_amount(0, 6), "0")

    def test_format_zero_decimals(self):
        self.assertEqual(format_raw_amount(42, 0), "42")

    def test_format_large_amount_keeps_precision(self):
        raw = 123456789012345678901234567890
        self.assertEqual(format_raw_amount(raw, 18), "123456789012.34567890123456789")

    def test_format_rejects_negative(self):
        with self.assertRaises(InvalidRequest):
            format_raw_amount(-1, 6)

    def test_parse_pads_fraction(self):
        self.assertEqual(parse_display_amount("1.5", 6), "1500000")
        self.assertEqual(parse_display_amount("1", 9), "1000000000")

    def test_parse_truncates_excess_precision(self):
        self.assertEqual(parse_display_amount("0.1234567", 6), "123456")

    def test_parse_strips_leading_zeros(self):
        self.assertEqual(parse_display_amount("0.000001", 6), "1")
        self.assertEqual(parse_display_amount("000", 6), "0")

    def test_parse_decimal_and_float_inputs(self):
        self.assertEqual(parse_display_amount(Decimal("2.25"), 2), "225")
        self.assertEqual(parse_display_amount(0.5, 9), "500000000")

    def test_parse_rejects_garbage(self):
        for bad in ("-1", "1.2.3", "abc", ""):
            with self.assertRaises(InvalidRequest, msg=bad):
                parse_display_amount(bad, 6)


@pytest.mark.parametrize("raw,decimals", [
    (0, 0),
    (1, 9),
    (1_500_000, 6),
    (10 ** 30 + 7, 18),
    (999, 2),
    (1_000_000, 6),
])
def test_format_parse_round_trip(raw, decimals):
    assert parse_display_amount(format_raw_amount(raw, decimals), decimals) == str(raw)


class TestPriceImpactClassification(unittest.TestCase):

    def test_lower_bound_belongs_to_band(self):
        self.assertEqual(classify_price_impact("0.1"), PriceImpactSeverity.MEDIUM)
        self.assertEqual(classify_price_impact("0.09999"), PriceImpactSeverity.LOW)
        self.assertEqual(classify_price_impact("1"), PriceImpactSeverity.HIGH)
        self.assertEqual(classify_price_impact("5"), PriceImpactSeverity.VERY_HIGH)

    def test_negative_impact_uses_magnitude(self):
        self.assertEqual(classify_price_impact("-2.5"), PriceImpactSeverity.HIGH)

    def test_zero_is_low(self):
        self.assertEqual(classify_price_impact(0), PriceImpactSeverity.LOW)


class TestValidateQuoteRequest(unittest.TestCase):

    def test_valid_request(self):
        result = validate_quote_request(QuoteRequest(SOL, USDC, "1000000", slippage_bps=50))
        self.assertTrue(result.valid)
        self.assertEqual(result.errors, ())

    def test_same_assets(self):
        result = validate_quote_request(QuoteRequest("A", "A", "5"))
        self.assertFalse(result.valid)
        self.assertIn("Input and output tokens must be different", result.errors)

    def test_reports_every_violation(self):
        request = QuoteRequest("A", "A", "-3", slippage_bps=10_001, platform_fee_bps=-1)
        result = validate_quote_request(request)

        self.assertFalse(result.valid)
        self.assertEqual(result.errors, (
            "Amount must be a positive number",
            "Input and output tokens must be different",
            "Slippage must be between 0 and 10000 basis points",
            "Platform fee must be between 0 and 10000 basis points",
        ))

    def test_missing_fields(self):
        result = validate_quote_request(QuoteRequest("", "", ""))
        self.assertEqual(result.errors, (
            "Input mint address is required",
            "Output mint address is required",
            "Amount is required",
        ))

    def test_zero_and_non_numeric_amounts(self):
        for amount in ("0", "abc", "NaN"):
            result = validate_quote_request(QuoteRequest(SOL, USDC, amount))
            self.assertEqual(result.errors, ("Amount must be a positive number",), amount)

    def test_non_integer_bps_collected(self):
        request = QuoteRequest("A", "A", "5", slippage_bps="50", platform_fee_bps=1.5)
        result = validate_quote_request(request)

        self.assertEqual(result.errors, (
            "Input and output tokens must be different",
            "Slippage must be a whole number of basis points",
            "Platform fee must be a whole number of basis points",
        ))

    def test_boundary_bps_are_valid(self):
        for bps in (0, 10_000):
            request = QuoteRequest(SOL, USDC, "1", slippage_bps=bps, platform_fee_bps=bps)
            self.assertTrue(validate_quote_request(request).valid)

    def test_raise_for_errors(self):
        with self.assertRaises(InvalidRequest) as ctx:
            validate_quote_request(QuoteRequest("A", "A", "5")).raise_for_errors()
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_REQUEST)
        self.assertIn("Invalid quote parameters", ctx.exception.message)
        self.assertEqual(ctx.exception.errors, ["Input and output tokens must be different"])


class TestMinimumOutput(unittest.TestCase):

    def test_floor_division(self):
        self.assertEqual(minimum_output(1_000_000, 50), "995000")
        self.assertEqual(minimum_output(999, 1), "998")  # 998.9001 floors

    def test_zero_and_full_slippage(self):
        self.assertEqual(minimum_output("123456789", 0), "123456789")
        self.assertEqual(minimum_output(123456789, 10_000), "0")

    def test_out_of_range_slippage(self):
        with self.assertRaises(InvalidRequest):
            minimum_output(100, 10_001)


@pytest.mark.parametrize("amount", [1, 7, 999, 1_000_000, 123_456_789_012_345_678_901])
@pytest.mark.parametrize("bps", [0, 1, 33, 50, 9_999, 10_000])
def test_minimum_output_never_exceeds_allowance(amount, bps):
    result = int(minimum_output(amount, bps))
    assert result * 10_000 <= amount * (10_000 - bps)
    assert (result + 1) * 10_000 > amount * (10_000 - bps)


class TestRecommendedSlippage(unittest.TestCase):

    def test_default_tiers(self):
        self.assertEqual(recommended_slippage_bps("0.05"), 10)
        self.assertEqual(recommended_slippage_bps("0.1"), 50)
        self.assertEqual(recommended_slippage_bps("0.5"), 100)
        self.assertEqual(recommended_slippage_bps("2"), 500)

    def test_caller_tiers(self):
        result = recommended_slippage_bps("1.0", low_bps=1, medium_bps=2, high_bps=3, very_high_bps=4)
        self.assertEqual(result, 3)


class TestCompareQuotes(unittest.TestCase):

    def test_exact_in_prefers_more_output(self):
        better = make_quote(output_amount=1_050_000)
        worse = make_quote(output_amount=1_000_000)
        self.assertEqual(compare_quotes(better, worse), 1)
        self.assertEqual(compare_quotes(worse, better), -1)

    def test_exact_out_prefers_less_input(self):
        cheaper = make_quote(input_amount=900, swap_mode=SwapMode.EXACT_OUT)
        pricier = make_quote(input_amount=1_000, swap_mode=SwapMode.EXACT_OUT)
        self.assertEqual(compare_quotes(cheaper, pricier), 1)
        self.assertEqual(compare_quotes(pricier, cheaper), -1)

    def test_tie(self):
        self.assertEqual(compare_quotes(make_quote(), make_quote()), 0)

    def test_large_amounts_do_not_lose_precision(self):
        base = 2 ** 64
        a = make_quote(output_amount=base + 1)
        b = make_quote(output_amount=base)
        self.assertEqual(compare_quotes(a, b), 1)


class TestQuoteHelpers(unittest.TestCase):

    def test_effective_price(self):
        quote = make_quote(input_amount=2_000_000_000, output_amount=300_000_000)
        self.assertEqual(effective_price(quote, 9, 6), Decimal("150"))

    def test_price_impact_guard(self):
        ensure_price_impact_within(make_quote(price_impact_pct="4.9"), 5.0)
        with self.assertRaises(InvalidRequest) as ctx:
            ensure_price_impact_within(make_quote(price_impact_pct="-6"), 5.0)
        self.assertEqual(ctx.exception.code, ErrorCode.PRICE_IMPACT_TOO_HIGH)

    def test_build_quote_params_only_set_keys(self):
        params = build_quote_params(QuoteRequest(SOL, USDC, 1000))
        self.assertEqual(params, {"inputMint": SOL, "outputMint": USDC, "amount": "1000"})

    def test_build_quote_params_all_options(self):
        request = QuoteRequest(
            SOL,
            USDC,
            "1000",
            slippage_bps=30,
            swap_mode="exactout",
            dexes=["Orca", "Raydium"],
            exclude_dexes=["Phoenix"],
            only_direct_routes=True,
            as_legacy_transaction=True,
            platform_fee_bps=20,
            max_accounts=64,
            auto_slippage=True,
            auto_slippage_collision_usd_value=1000,
            restrict_intermediate_tokens=True,
        )
        params = build_quote_params(request)

        self.assertEqual(params["slippageBps"], "30")
        self.assertEqual(params["swapMode"], "ExactOut")
        self.assertEqual(params["dexes"], "Orca,Raydium")
        self.assertEqual(params["excludeDexes"], "Phoenix")
        self.assertEqual(params["onlyDirectRoutes"], "true")
        self.assertEqual(params["asLegacyTransaction"], "true")
        self.assertEqual(params["platformFeeBps"], "20")
        self.assertEqual(params["maxAccounts"], "64")
        self.assertEqual(params["autoSlippage"], "true")
        self.assertEqual(params["autoSlippageCollisionUsdValue"], "1000")
        self.assertEqual(params["restrictIntermediateTokens"], "true")


if __name__ == "__main__":
    unittest.main()
