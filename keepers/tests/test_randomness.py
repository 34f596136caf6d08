import asyncio
import unittest
from unittest import mock

from keepers.randomness import HttpBeaconSource, LocalRandomnessSource
from keepers.randomness.http_api import HttpBeaconSourceConfig


class HttpBeaconSourceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.source = HttpBeaconSource(HttpBeaconSourceConfig(url="https://beacon.example/latest"))

    def _fetch(self, payload, request_id=1, num_words=2):
        response = mock.Mock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        with mock.patch("keepers.randomness.http_api.requests.get", return_value=response) as get:
            drawn = asyncio.run(self.source.fetch_random_words(request_id, num_words))
        get.assert_called_once_with("https://beacon.example/latest", timeout=10)
        return drawn

    def test_derives_distinct_words_per_index(self) -> None:
        drawn = self._fetch({"round": 77, "randomness": "0x" + "ab" * 32})

        self.assertEqual(drawn.beacon_round, 77)
        self.assertEqual(len(drawn.words), 2)
        self.assertNotEqual(drawn.words[0], drawn.words[1])
        for word in drawn.words:
            self.assertTrue(0 <= word < 2**256)

    def test_words_depend_on_request_id(self) -> None:
        payload = {"round": 5, "randomness": "cd" * 32}
        first = self._fetch(payload, request_id=1, num_words=1)
        second = self._fetch(payload, request_id=2, num_words=1)

        self.assertNotEqual(first.words, second.words)

    def test_missing_round_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.source._parse_payload({"randomness": "ab"})

    def test_missing_value_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.source._parse_payload({"round": 1})

    def test_invalid_hex_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.source._parse_payload({"round": 1, "randomness": "not-hex"})

    def test_empty_value_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.source._parse_payload({"round": 1, "randomness": "0x"})


class LocalRandomnessSourceTests(unittest.TestCase):
    def test_returns_requested_number_of_words(self) -> None:
        drawn = asyncio.run(LocalRandomnessSource().fetch_random_words(3, 4))

        self.assertEqual(len(drawn.words), 4)
        self.assertIsNone(drawn.beacon_round)


if __name__ == "__main__":
    unittest.main()
