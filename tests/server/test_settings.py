from unittest import TestCase

from incomp.server.settings import default_settings, load_settings
from incomp.shared.types import ValidationError


class Settings(TestCase):
    def test_1(self) -> None:
        settings = load_settings()
        self.assertEqual(settings.limits.max_update_count, 50)
        self.assertEqual(settings.limits.min_abort_time, 1.0)
        self.assertEqual(settings.match.max_results, 300)
        self.assertEqual(settings.weights.gap, -1100)
        self.assertTrue(settings.completion.activate_on_typing)

    def test_2(self) -> None:
        settings = load_settings({"match.max_results": 10})
        self.assertEqual(settings.match.max_results, 10)
        self.assertEqual(settings.match.scan_limit, default_settings().match.scan_limit)

    def test_3(self) -> None:
        settings = load_settings({"limits": {"debounce_time": 0.5}})
        self.assertEqual(settings.limits.debounce_time, 0.5)
        self.assertEqual(settings.limits.update_sync_time, 0.1)

    def test_4(self) -> None:
        with self.assertRaises(ValidationError):
            load_settings({"match.max_results": 0})

    def test_5(self) -> None:
        with self.assertRaises(ValidationError):
            load_settings({"limits.debounce_time": -1.0})

    def test_6(self) -> None:
        with self.assertRaises(ValidationError):
            load_settings({"match.max_results": "many"})

    def test_7(self) -> None:
        self.assertIs(default_settings(), default_settings())
