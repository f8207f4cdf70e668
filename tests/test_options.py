import sys
import unittest
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from options import (  # noqa: E402
    Options,
    ValidationError,
    Variable,
    parse_i2c_address,
    parse_options,
    parse_sample_rate,
)


class TestI2CAddress(unittest.TestCase):
    def test_every_two_digit_hex_value(self):
        for value in range(256):
            for text in (f"{value:02X}", f"{value:02x}"):
                with self.subTest(text=text):
                    self.assertEqual(parse_i2c_address(text), value)

    def test_mixed_case_digits(self):
        self.assertEqual(parse_i2c_address("aF"), 0xAF)

    def test_rejects_malformed_addresses(self):
        for text in ("2G", "G2", "0x", "1", "123", "", " 2", "-1"):
            with self.subTest(text=text):
                with self.assertRaises(ValidationError):
                    parse_i2c_address(text)

    def test_address_flag(self):
        options = parse_options(["-a", "4f"])
        self.assertEqual(options.i2c_address, 0x4F)
        self.assertIsNone(options.board)


class TestBoard(unittest.TestCase):
    def test_click_board_preset(self):
        options = parse_options(["--board", "mikroe-current-6-click"])
        self.assertEqual(options.i2c_address, 0x21)
        self.assertAlmostEqual(options.shunt_resistor, 0.010)

    def test_evsys_board_preset(self):
        options = parse_options(["-b", "MAX40080EVSYS"])
        self.assertEqual(options.i2c_address, 0x21)
        self.assertAlmostEqual(options.shunt_resistor, 0.050)

    def test_unknown_board(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_options(["--board", "max40080evsys"])
        self.assertIn("Unknown board", str(ctx.exception))
        self.assertIn("MAX40080EVSYS", str(ctx.exception))

    def test_board_excludes_address_and_shunt_in_any_order(self):
        combinations = [
            ["--board", "MAX40080EVSYS", "--i2c-address", "21"],
            ["--i2c-address", "21", "--board", "MAX40080EVSYS"],
            ["--board", "mikroe-current-6-click", "--shunt", "0.01"],
            ["--shunt", "0.01", "--board", "mikroe-current-6-click"],
        ]
        for argv in combinations:
            with self.subTest(argv=argv):
                with self.assertRaises(ValidationError) as ctx:
                    parse_options(argv)
                message = str(ctx.exception)
                self.assertIn("-b/--board", message)
                self.assertIn("cannot be specified together", message)

    def test_conflict_message_names_both_flags(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_options(["-a", "21", "-b", "MAX40080EVSYS"])
        self.assertIn("-a/--i2c-address", str(ctx.exception))
        with self.assertRaises(ValidationError) as ctx:
            parse_options(["-r", "0.01", "-b", "MAX40080EVSYS"])
        self.assertIn("-r/--shunt", str(ctx.exception))

    def test_conflict_reported_before_malformed_values(self):
        for argv in (
            ["-b", "MAX40080EVSYS", "-r", "abc"],
            ["-a", "zz", "-b", "MAX40080EVSYS"],
            ["-b", "no-such-board", "-a", "21"],
        ):
            with self.subTest(argv=argv):
                with self.assertRaises(ValidationError) as ctx:
                    parse_options(argv)
                self.assertIn("cannot be specified together", str(ctx.exception))


class TestScalarFlags(unittest.TestCase):
    def test_controller(self):
        self.assertEqual(parse_options(["-c", "3"]).i2c_controller, 3)
        self.assertEqual(parse_options(["--i2c-controler", "0"]).i2c_controller, 0)
        self.assertEqual(parse_options(["--i2c-controller", "7"]).i2c_controller, 7)

    def test_controller_trailing_garbage(self):
        with self.assertRaises(ValidationError):
            parse_options(["-c", "1a"])

    def test_shunt(self):
        self.assertAlmostEqual(parse_options(["-r", "0.1"]).shunt_resistor, 0.1)
        self.assertAlmostEqual(parse_options(["--shunt", "5e-3"]).shunt_resistor, 0.005)

    def test_shunt_rejects_garbage_and_non_positive(self):
        for text in ("0.1ohm", "abc", "0", "-0.5", "nan"):
            with self.subTest(text=text):
                with self.assertRaises(ValidationError):
                    parse_options(["--shunt", text])

    def test_variable(self):
        self.assertIs(parse_options(["-v", "voltage"]).variable, Variable.VOLTAGE)
        with self.assertRaises(ValidationError):
            parse_options(["-v", "power"])

    def test_averaging(self):
        self.assertEqual(parse_options(["--averaging", "32"]).averaging_index, 3)
        self.assertEqual(parse_options(["-f", "1"]).averaging_index, 0)
        self.assertEqual(parse_options(["-f", "128"]).averaging_index, 5)

    def test_averaging_rejects_unsupported(self):
        for text in ("3", "0", "256", "32.0", "8x"):
            with self.subTest(text=text):
                with self.assertRaises(ValidationError):
                    parse_options(["--averaging", text])

    def test_count(self):
        self.assertEqual(parse_options(["--count", "-1"]).sample_count, -1)
        self.assertEqual(parse_options(["--count", "5"]).sample_count, 5)
        self.assertEqual(parse_options(["-n", "1"]).sample_count, 1)

    def test_count_rejects_zero_and_below_minus_one(self):
        for text in ("0", "-2", "-100", "5samples", ""):
            with self.subTest(text=text):
                with self.assertRaises(ValidationError):
                    parse_options(["--count", text])

    def test_raw_flag(self):
        self.assertTrue(parse_options(["-w"]).raw_output)
        self.assertFalse(parse_options([]).raw_output)


class TestSampleRate(unittest.TestCase):
    def test_every_table_entry(self):
        rates = ["15", "18.75", "23.45", "30", "37.5", "47.1", "60", "93.5",
                 "120", "150", "234.5", "375", "468.5", "750", "1000", "0.5"]
        for index, text in enumerate(rates):
            with self.subTest(rate=text):
                self.assertEqual(parse_sample_rate(text), index)

    def test_tolerance(self):
        self.assertEqual(parse_sample_rate("93.49"), 7)
        self.assertEqual(parse_sample_rate("93.51"), 7)
        with self.assertRaises(ValidationError):
            parse_sample_rate("93.4")

    def test_unknown_rate_lists_table(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_sample_rate("100")
        self.assertIn("1000 and 0.5", str(ctx.exception))

    def test_trailing_garbage(self):
        with self.assertRaises(ValidationError):
            parse_sample_rate("15k")

    def test_both_requires_half_ksps(self):
        for argv in (["-s", "0.5", "-v", "both"], ["-v", "both", "-s", "0.5"]):
            with self.subTest(argv=argv):
                options = parse_options(argv)
                self.assertEqual(options.sample_rate_index, 15)
                self.assertIs(options.variable, Variable.BOTH)

        for argv in (["-s", "15", "-v", "both"], ["-v", "both", "-s", "15"]):
            with self.subTest(argv=argv):
                with self.assertRaises(ValidationError):
                    parse_options(argv)


class TestParser(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(parse_options([]), Options())

    def test_unknown_flag_raises_validation_error(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_options(["--frequency", "10"])
        self.assertIn("usage:", ctx.exception.usage)

    def test_missing_value(self):
        with self.assertRaises(ValidationError):
            parse_options(["--count"])

    def test_cross_field_error_carries_usage(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_options(["-b", "MAX40080EVSYS", "-a", "21"])
        self.assertIn("usage:", ctx.exception.usage)

    def test_options_are_immutable(self):
        options = parse_options(["-n", "2"])
        with self.assertRaises(Exception):
            options.sample_count = 3


if __name__ == '__main__':
    unittest.main()
