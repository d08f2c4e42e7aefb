"""Tests for config.json generation and validation."""

import copy
import unittest

from deviceconfig.config import find_violations, generate, validate
from deviceconfig.errors import (
    ConfigValidationError,
    InvalidOptions,
    SchemaViolation,
    UnrecognizedField,
)
from deviceconfig.network import NETWORK_FILE, SETTINGS_FILE
from deviceconfig.schema import SCHEMA_PROPERTIES


def _options(**overrides):
    options = {
        "application": {"app_name": "HelloWorldApp", "id": 18, "device_type": "raspberry-pi"},
        "user":        {"id": 7, "username": "johndoe"},
        "pubnub":      {"subscribe_key": "demo", "publish_key": "demo"},
        "mixpanel":    {"token": "e3bc4100330c35722740fb8c6f5abddc"},
        "apiKey":      "asdf",
        "vpnPort":     1723,
        "endpoints": {
            "api":      "https://api.resin.io",
            "vpn":      "vpn.resin.io",
            "registry": "registry.resin.io",
        },
    }
    options.update(overrides)
    return options


REQUIRED = {
    "applicationName", "applicationId", "deviceType", "userId", "username",
    "files", "appUpdatePollInterval", "listenPort", "vpnPort", "apiEndpoint",
    "vpnEndpoint", "registryEndpoint", "deltaEndpoint", "pubnubSubscribeKey",
    "pubnubPublishKey", "mixpanelToken", "apiKey",
}


class TestGenerate(unittest.TestCase):
    def test_example_record(self):
        config = generate(_options(), {"network": "ethernet", "appUpdatePollInterval": 50000})
        self.assertEqual(config["applicationName"], "HelloWorldApp")
        self.assertEqual(config["applicationId"], 18)
        self.assertEqual(config["deviceType"], "raspberry-pi")
        self.assertEqual(config["userId"], 7)
        self.assertEqual(config["username"], "johndoe")
        self.assertEqual(config["appUpdatePollInterval"], 50000)
        self.assertEqual(config["listenPort"], 48484)
        self.assertEqual(config["vpnPort"], 1723)
        self.assertEqual(config["apiEndpoint"], "https://api.resin.io")
        self.assertEqual(config["vpnEndpoint"], "vpn.resin.io")
        self.assertEqual(config["registryEndpoint"], "registry.resin.io")
        self.assertIsNone(config["deltaEndpoint"])
        self.assertEqual(config["pubnubSubscribeKey"], "demo")
        self.assertEqual(config["pubnubPublishKey"], "demo")
        self.assertEqual(config["mixpanelToken"], "e3bc4100330c35722740fb8c6f5abddc")
        self.assertEqual(config["apiKey"], "asdf")
        self.assertNotIn("wifiSsid", config)
        self.assertNotIn("wifiKey", config)

    def test_key_set(self):
        config = generate(_options())
        self.assertEqual(set(config), REQUIRED)
        self.assertTrue(set(config) <= set(SCHEMA_PROPERTIES))

    def test_files_from_network_options(self):
        config = generate(_options(), {"network": "wifi", "wifiSsid": "foobar", "wifiKey": "hello"})
        self.assertEqual(set(config["files"]), {SETTINGS_FILE, NETWORK_FILE})
        self.assertIn("Name = foobar", config["files"][NETWORK_FILE])

    def test_listen_port_is_fixed(self):
        config = generate(_options(listenPort=1))
        self.assertEqual(config["listenPort"], 48484)

    def test_vpn_port_default(self):
        options = _options()
        del options["vpnPort"]
        self.assertEqual(generate(options)["vpnPort"], 1723)

    def test_vpn_port_passthrough(self):
        self.assertEqual(generate(_options(vpnPort=443))["vpnPort"], 443)

    def test_does_not_mutate_inputs(self):
        options = _options()
        del options["vpnPort"]
        params = {"network": "wifi", "wifiSsid": "foobar", "wifiKey": "hello"}
        options_before = copy.deepcopy(options)
        params_before = copy.deepcopy(params)
        generate(options, params)
        self.assertEqual(options, options_before)
        self.assertEqual(params, params_before)

    def test_poll_interval_default(self):
        self.assertEqual(generate(_options())["appUpdatePollInterval"], 60000)

    def test_zero_poll_interval_uses_default(self):
        config = generate(_options(), {"appUpdatePollInterval": 0})
        self.assertEqual(config["appUpdatePollInterval"], 60000)

    def test_delta_endpoint(self):
        options = _options()
        options["endpoints"]["delta"] = "https://delta.resin.io"
        self.assertEqual(generate(options)["deltaEndpoint"], "https://delta.resin.io")

    def test_wifi_credentials_copied(self):
        config = generate(_options(), {"network": "wifi", "wifiSsid": "foobar", "wifiKey": "hello"})
        self.assertEqual(config["wifiSsid"], "foobar")
        self.assertEqual(config["wifiKey"], "hello")

    def test_wifi_credentials_ignored_for_ethernet(self):
        config = generate(_options(), {"network": "ethernet", "wifiSsid": "foobar", "wifiKey": "hello"})
        self.assertNotIn("wifiSsid", config)
        self.assertNotIn("wifiKey", config)

    def test_wifi_without_ssid_fails(self):
        with self.assertRaises(SchemaViolation) as ctx:
            generate(_options(), {"network": "wifi", "wifiKey": "hello"})
        self.assertEqual(ctx.exception.property, "wifiSsid")
        self.assertEqual(
            str(ctx.exception), "Validation: wifiSsid is required when network is wifi"
        )

    def test_invalid_input_fails(self):
        with self.assertRaises(SchemaViolation) as ctx:
            generate(_options(apiKey=None))
        self.assertEqual(ctx.exception.property, "apiKey")

    def test_missing_leaf_is_reported_by_validation(self):
        options = _options(pubnub={"subscribe_key": "demo"})
        with self.assertRaises(SchemaViolation) as ctx:
            generate(options)
        self.assertEqual(ctx.exception.property, "pubnubPublishKey")
        self.assertEqual(str(ctx.exception), "Validation: pubnubPublishKey is required")

    def test_missing_leaves_in_schema_order(self):
        options = _options(user={"id": 7}, endpoints={"api": "https://api.resin.io", "vpn": "vpn.resin.io"})
        with self.assertRaises(SchemaViolation) as ctx:
            generate(options)
        self.assertEqual(ctx.exception.property, "username")

    def test_missing_sub_object_fails(self):
        options = _options()
        del options["mixpanel"]
        with self.assertRaises(KeyError):
            generate(options)

    def test_invalid_network_options(self):
        with self.assertRaises(InvalidOptions):
            generate(_options(), ["wifi"])

    def test_generated_record_revalidates(self):
        config = generate(_options(), {"network": "wifi", "wifiSsid": "foobar", "wifiKey": "hello"})
        validate(config)


class TestValidate(unittest.TestCase):
    def setUp(self):
        self.config = generate(_options())

    def test_unrecognized_field(self):
        self.config["foo"] = "bar"
        with self.assertRaises(UnrecognizedField) as ctx:
            validate(self.config)
        self.assertEqual(ctx.exception.property, "foo")
        self.assertEqual(str(ctx.exception), "Validation: foo not recognized")

    def test_first_unrecognized_field_in_key_order(self):
        self.config["zeta"] = 1
        self.config["alpha"] = 2
        with self.assertRaises(UnrecognizedField) as ctx:
            validate(self.config)
        self.assertEqual(ctx.exception.property, "zeta")

    def test_missing_required_field(self):
        del self.config["applicationName"]
        with self.assertRaises(SchemaViolation) as ctx:
            validate(self.config)
        self.assertEqual(ctx.exception.property, "applicationName")
        self.assertEqual(str(ctx.exception), "Validation: applicationName is required")

    def test_schema_violation_reported_before_unrecognized_field(self):
        del self.config["username"]
        self.config["foo"] = "bar"
        with self.assertRaises(SchemaViolation) as ctx:
            validate(self.config)
        self.assertEqual(ctx.exception.property, "username")

    def test_numeric_strings_are_accepted(self):
        self.config["applicationId"] = "18"
        self.config["vpnPort"] = "1723"
        validate(self.config)
        self.assertEqual(self.config["applicationId"], "18")

    def test_booleans_are_not_integers(self):
        for field in ("vpnPort", "applicationId", "listenPort"):
            with self.subTest(field=field):
                config = dict(self.config)
                config[field] = True
                with self.assertRaises(SchemaViolation) as ctx:
                    validate(config)
                self.assertEqual(ctx.exception.property, field)

    def test_boolean_device_id_rejected(self):
        self.config.update(registered_at=1700000000, deviceId=False, uuid="7cf02a6")
        violations = find_violations(self.config)
        self.assertEqual([v.property for v in violations], ["deviceId"])

    def test_wrong_type(self):
        self.config["applicationId"] = "eighteen"
        with self.assertRaises(SchemaViolation) as ctx:
            validate(self.config)
        self.assertEqual(ctx.exception.property, "applicationId")

    def test_invalid_api_url(self):
        self.config["apiEndpoint"] = "not a url"
        with self.assertRaises(SchemaViolation) as ctx:
            validate(self.config)
        self.assertEqual(ctx.exception.property, "apiEndpoint")

    def test_device_fields(self):
        self.config["registered_at"] = 1700000000
        self.config["deviceId"] = 5
        self.config["uuid"] = "7cf02a6"
        validate(self.config)

    def test_null_device_field(self):
        self.config["uuid"] = None
        with self.assertRaises(SchemaViolation) as ctx:
            validate(self.config)
        self.assertEqual(ctx.exception.property, "uuid")

    def test_errors_are_value_errors(self):
        self.config["foo"] = "bar"
        with self.assertRaises(ValueError):
            validate(self.config)


class TestFindViolations(unittest.TestCase):
    def setUp(self):
        self.config = generate(_options())

    def test_valid_record(self):
        self.assertEqual(find_violations(self.config), [])

    def test_all_schema_violations_in_field_order(self):
        del self.config["username"]
        del self.config["applicationName"]
        self.config["listenPort"] = "high"
        violations = find_violations(self.config)
        self.assertEqual(
            [v.property for v in violations],
            ["applicationName", "username", "listenPort"],
        )
        self.assertTrue(all(isinstance(v, SchemaViolation) for v in violations))

    def test_all_unrecognized_fields(self):
        self.config["foo"] = 1
        self.config["bar"] = 2
        violations = find_violations(self.config)
        self.assertEqual([v.property for v in violations], ["foo", "bar"])
        self.assertTrue(all(isinstance(v, UnrecognizedField) for v in violations))

    def test_validate_raises_first_violation(self):
        del self.config["username"]
        del self.config["apiKey"]
        first = find_violations(self.config)[0]
        with self.assertRaises(ConfigValidationError) as ctx:
            validate(self.config)
        self.assertEqual(str(ctx.exception), str(first))


if __name__ == "__main__":
    unittest.main()
