"""
Configuration and host environment tests.
"""
import json
import logging
import tempfile
import unittest
from pathlib import Path
from unittest import TestCase

from argosy import Configuration, HostEnvironment, add_default_sources, configure_logging, parse_level


class TestConfiguration(TestCase):
    def testFlattenedMapping(self):
        configuration = Configuration({"Logging": {"LogLevel": {"Default": "Debug"}}, "Hosts": ["a", "b"]})
        self.assertEqual(configuration["Logging:LogLevel:Default"], "Debug")
        self.assertEqual(configuration["hosts:1"], "b")
        self.assertIn("logging:loglevel:default", configuration)

    def testMissingKey(self):
        configuration = Configuration()
        self.assertIsNone(configuration.get("Missing"))
        self.assertEqual(configuration.get("Missing", 3), 3)
        with self.assertRaises(KeyError):
            configuration["Missing"]

    def testLaterSourceWins(self):
        configuration = Configuration({"Name": "first", "Keep": 1})
        configuration.add_mapping({"name": "second"})
        self.assertEqual(configuration["Name"], "second")
        self.assertEqual(configuration["Keep"], 1)

    def testEnvironmentVariables(self):
        configuration = Configuration().add_environment_variables(
            "APP_",
            environ={"APP_LOGGING__LOGLEVEL__DEFAULT": "Warning", "OTHER": "x"},
        )
        self.assertEqual(configuration["Logging:LogLevel:Default"], "Warning")
        self.assertNotIn("OTHER", configuration)

    def testSection(self):
        configuration = Configuration({"Logging": {"LogLevel": {"Default": "Debug", "argosy": "Error"}}})
        section = configuration.section("Logging:LogLevel")
        self.assertEqual(sorted(section.keys()), ["Default", "argosy"])

    def testJsonFiles(self):
        with tempfile.TemporaryDirectory() as directory:
            root = Path(directory)
            (root / "appsettings.json").write_text(json.dumps({"Name": "base", "Mode": "base"}))
            (root / "appsettings.Development.json").write_text(json.dumps({"Mode": "development"}))
            environment = HostEnvironment("tool", "Development", root)
            configuration = add_default_sources(Configuration(), environment, environ={"NAME": "environment"})
        self.assertEqual(configuration["Mode"], "development")
        self.assertEqual(configuration["Name"], "environment")

    def testMissingJsonFile(self):
        configuration = Configuration().add_json_file("does-not-exist.json")
        self.assertEqual(len(configuration), 0)
        with self.assertRaises(FileNotFoundError):
            Configuration().add_json_file("does-not-exist.json", optional=False)


class TestHostEnvironment(TestCase):
    def testExplicitValues(self):
        environment = HostEnvironment("tool", "development", "/tmp")
        self.assertEqual(environment.application_name, "tool")
        self.assertTrue(environment.is_development())
        self.assertFalse(environment.is_production())
        self.assertEqual(environment.content_root, Path("/tmp"))

    def testDefaultEnvironmentName(self):
        environment = HostEnvironment()
        self.assertIsInstance(environment.environment_name, str)
        self.assertTrue(environment.environment_name)


class TestLogging(TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.level = self.root.level
        self.handlers = list(self.root.handlers)

    def tearDown(self):
        self.root.setLevel(self.level)
        self.root.handlers[:] = self.handlers
        logging.getLogger("argosy.sample").setLevel(logging.NOTSET)

    def testLevelNames(self):
        self.assertEqual(parse_level("Information"), logging.INFO)
        self.assertEqual(parse_level("Trace"), logging.DEBUG)
        self.assertEqual(parse_level("warning"), logging.WARNING)
        self.assertEqual(parse_level(15), 15)
        with self.assertRaises(ValueError):
            parse_level("loud")

    def testConfiguredLevels(self):
        configuration = Configuration({
            "Logging": {"LogLevel": {"Default": "Error", "argosy.sample": "Debug"}},
        })
        configure_logging(configuration)
        self.assertEqual(self.root.level, logging.ERROR)
        self.assertEqual(logging.getLogger("argosy.sample").level, logging.DEBUG)

    def testExplicitLevelWins(self):
        configure_logging(Configuration({"Logging": {"LogLevel": {"Default": "Error"}}}), level="Warning")
        self.assertEqual(self.root.level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
