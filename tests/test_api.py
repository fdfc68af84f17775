"""
Testes da API HTTP
"""

import unittest

from fastapi.testclient import TestClient

from main import app


def order_payload(algorithm="ffd"):
    return {
        "items": [
            {"profile_type": "AL-4020", "length": 1000, "quantity": 5, "work_order_id": "OP-1"},
            {"profile_type": "AL-4020", "length": 750, "quantity": 3, "work_order_id": "OP-1"},
            {"profile_type": "AL-4020", "length": 500, "quantity": 8, "work_order_id": "OP-2"},
        ],
        "stock_lengths": [{"stock_length": 6100}],
        "algorithm": algorithm,
    }


class TestApi(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_algorithms(self):
        body = self.client.get("/algorithms").json()
        self.assertEqual(len(body["algorithms"]), 8)
        self.assertIn("branch-and-bound", body["algorithms"])
        self.assertEqual(body["default"], "ffd")

    def test_optimize(self):
        response = self.client.post("/optimize", json=order_payload("bfd"))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["algorithm"], "bfd")
        self.assertEqual(body["stock_count"], 2)
        self.assertEqual(body["total_segments"], 16)
        self.assertTrue(body["request_id"].startswith("opt-"))

    def test_empty_items_is_bad_request(self):
        payload = order_payload()
        payload["items"] = []
        response = self.client.post("/optimize", json=payload)
        self.assertEqual(response.status_code, 400)
        self.assertIn("non-empty items", response.json()["detail"])

    def test_unknown_algorithm_is_bad_request(self):
        response = self.client.post("/optimize", json=order_payload("simplex"))
        self.assertEqual(response.status_code, 400)

    def test_missing_items_without_provider(self):
        response = self.client.post("/optimize", json={"algorithm": "ffd"})
        self.assertEqual(response.status_code, 503)

    def test_batch_reports_individual_failures(self):
        bad = order_payload()
        bad["items"] = []
        body = self.client.post("/optimize/batch", json=[order_payload(), bad]).json()
        self.assertEqual(body["successful"], 1)
        self.assertEqual(body["failed"], 1)
        self.assertEqual(body["errors"][0]["index"], 1)

    def test_example_request_is_accepted(self):
        example = self.client.get("/examples/1d").json()
        response = self.client.post("/optimize", json=example)
        self.assertEqual(response.status_code, 200)
        self.assertIn("pooling", response.json()["metadata"])

    def test_text_report(self):
        result = self.client.post("/optimize", json=order_payload()).json()
        response = self.client.post("/report/generate?format=txt", json=result)
        self.assertEqual(response.status_code, 200)
        self.assertIn("RELATÓRIO DE OTIMIZAÇÃO DE CORTES", response.json()["results"]["txt"])

    def test_self_test(self):
        body = self.client.get("/self-test").json()
        self.assertTrue(body["passed"], body["failures"])


if __name__ == "__main__":
    unittest.main()
