"""
Tests for the utils module.

This module verifies the small building blocks the other layers rely on:
- The Unset sentinel: singleton identity, falsy semantics, copying and pickling,
  use inside isinstance unions, finality.
- coalesce(), rename() and mirror().
- pluralize().
"""
import copy
import pickle
import unittest
from threading import Thread, Lock
from unittest import TestCase

from switchboard.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` singleton.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the same object reference on every call.
        """
        self.assertIs(UnsetType(), Unset)

    def testFalsely(self) -> None:
        self.assertFalse(bool(Unset))

    def testNotEqualToNoneOrFalse(self) -> None:
        """
        Falsy does not imply equality with other falsy values (None/False).
        """
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnionInIsinstance(self) -> None:
        """
        `str | Unset` is usable as an isinstance() target.
        """
        self.assertTrue(isinstance("x", str | Unset))
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPickleRoundTrip(self) -> None:
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testThreadSafetySingleton(self) -> None:
        """
        Concurrent constructions return the same instance.
        """
        results = []
        lock = Lock()

        def worker():
            instance = UnsetType()
            with lock:
                results.append(instance)

        threads = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertTrue(results)
        for instance in results:
            self.assertIs(instance, Unset)

    def testFinalClass(self) -> None:
        with self.assertRaises(TypeError):
            type("UnsetType", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    coalesce(), rename(), mirror() and pluralize().
    """

    def testCoalesceReplacesUnset(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testCoalesceKeepsFalsyValues(self):
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testRenameDirect(self):
        def f():
            pass

        self.assertEqual(rename(f, "g").__name__, "g")

    def testRenameDecorator(self):
        @rename("handler")
        def f():
            pass

        self.assertEqual(f.__qualname__, "handler")

    def testRenameRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            rename(1, "x")

    def testMirrorCopiesContainers(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ("a", "b")

        holder = Holder()
        holder.items.append("c")
        self.assertEqual(holder.items, ["a", "b"])

    def testMirrorFrozenKeepsIdentity(self):
        class Holder:
            items = mirror("items", frozen=True)

            def __init__(self):
                self._items = ("a", "b")

        holder = Holder()
        self.assertIs(holder.items, holder._items)

    def testPluralize(self):
        self.assertEqual(pluralize("command"), "commands")
        self.assertEqual(pluralize("entry"), "entries")
        self.assertEqual(pluralize("alias"), "aliases")
        self.assertEqual(pluralize("positional index"), "positional indexes")
        self.assertEqual(pluralize("Box"), "Boxes")


if __name__ == '__main__':
    unittest.main()
