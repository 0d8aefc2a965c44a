"""
Service container tests (lifetimes, auto-wiring, closing).
"""
import unittest
from unittest import TestCase

from argosy import ResolutionError, ServiceCollection, ServiceProvider


class Clock:
    pass


class Repository:
    def __init__(self, clock: Clock):
        self.clock = clock
        self.closed = False

    def close(self):
        self.closed = True


class Report:
    def __init__(self, repository: Repository, title: str = "report"):
        self.repository = repository
        self.title = title


class Left:
    def __init__(self, right: "Right"):
        self.right = right


class Right:
    def __init__(self, left: Left):
        self.left = left


class TestServices(TestCase):
    def setUp(self):
        self.services = ServiceCollection()

    def testUnregisteredResolvesToNone(self):
        self.assertIsNone(self.services.build().resolve(Clock))

    def testSingletonIsShared(self):
        self.services.add_singleton(Clock)
        provider = self.services.build()
        self.assertIs(provider.resolve(Clock), provider.resolve(Clock))

    def testSingletonInstance(self):
        clock = Clock()
        self.services.add_singleton(Clock, clock)
        self.assertIs(self.services.build().resolve(Clock), clock)

    def testTransientIsFresh(self):
        self.services.add_transient(Clock)
        provider = self.services.build()
        self.assertIsNot(provider.resolve(Clock), provider.resolve(Clock))

    def testFactory(self):
        self.services.add_singleton(Clock)
        self.services.add_transient(Report, lambda provider: Report(Repository(provider.resolve(Clock)), "custom"))
        report = self.services.build().resolve(Report)
        self.assertEqual(report.title, "custom")

    def testAutowiring(self):
        self.services.add_singleton(Clock)
        self.services.add_singleton(Repository)
        provider = self.services.build()
        report = provider.construct(Report)
        self.assertIs(report.repository, provider.resolve(Repository))
        self.assertIs(report.repository.clock, provider.resolve(Clock))
        self.assertEqual(report.title, "report")

    def testConstructIsAlwaysFresh(self):
        self.services.add_singleton(Clock)
        provider = self.services.build()
        self.assertIsNot(provider.construct(Clock), provider.resolve(Clock))

    def testUnsatisfiableConstructorRaises(self):
        with self.assertRaises(ResolutionError):
            self.services.build().construct(Repository)

    def testCircularDependencyRaises(self):
        self.services.add_transient(Left)
        self.services.add_transient(Right)
        with self.assertRaises(ResolutionError):
            self.services.build().resolve(Left)

    def testTryAddKeepsFirstRegistration(self):
        clock = Clock()
        self.assertTrue(self.services.try_add_singleton(Clock, clock))
        self.assertFalse(self.services.try_add_transient(Clock))
        self.assertIs(self.services.build().resolve(Clock), clock)

    def testLaterRegistrationReplaces(self):
        self.services.add_transient(Clock)
        self.services.add_singleton(Clock)
        provider = self.services.build()
        self.assertIs(provider.resolve(Clock), provider.resolve(Clock))

    def testProviderResolvesItself(self):
        provider = self.services.build()
        self.assertIs(provider.resolve(ServiceProvider), provider)

    def testCloseClosesSingletons(self):
        self.services.add_singleton(Clock)
        self.services.add_singleton(Repository)
        with self.services.build() as provider:
            repository = provider.resolve(Repository)
        self.assertTrue(repository.closed)

    def testInvalidRegistrationRaises(self):
        with self.assertRaises(TypeError):
            self.services.add_singleton("clock")
        with self.assertRaises(TypeError):
            self.services.add_transient(Clock, Repository)


if __name__ == "__main__":
    unittest.main()
