import inspect
import json

from fastapi.testclient import TestClient

from muling_engine.analysis import analyze
from muling_engine.export import build_graph_data, report_to_json
from muling_engine.ingest import parse_csv
from muling_engine.main import analyze_file, app


client = TestClient(app)


CYCLE_CSV = """transaction_id,sender_id,receiver_id,amount,timestamp
T1,ACC_001,ACC_002,10000,2024-01-10 10:00:00
T2,ACC_002,ACC_003,9000,2024-01-10 12:00:00
T3,ACC_003,ACC_001,8500,2024-01-10 14:00:00
T4,ACC_004,ACC_005,120,2024-01-11 09:00:00
"""


def _upload(content, filename="transactions.csv"):
    return client.post("/analyze", files={"file": (filename, content, "text/csv")})


class TestExport:
    def test_report_json_has_no_graph(self):
        payload = json.loads(report_to_json(analyze(parse_csv(CYCLE_CSV))))
        assert set(payload) == {"suspicious_accounts", "fraud_rings", "summary"}
        assert payload["fraud_rings"][0]["ring_id"] == "RING_001"
        assert payload["summary"]["total_accounts_analyzed"] == 5

    def test_graph_data_marks_ring_members(self):
        data = build_graph_data(analyze(parse_csv(CYCLE_CSV)))
        nodes = {n.id: n for n in data.nodes}
        assert nodes["ACC_001"].ring_id == "RING_001"
        assert nodes["ACC_001"].suspicion_score is not None
        assert nodes["ACC_004"].ring_id is None
        assert nodes["ACC_004"].detected_patterns == []
        assert [e.id for e in data.edges] == ["T1", "T2", "T3", "T4"]


class TestAPI:
    def test_root_and_health(self):
        assert client.get("/").status_code == 200
        assert client.get("/health").json() == {"status": "ok"}

    def test_analyze_csv(self):
        resp = _upload(CYCLE_CSV)
        assert resp.status_code == 200
        body = resp.json()
        assert body["result"]["summary"]["fraud_rings_detected"] == 1
        assert body["result"]["fraud_rings"][0]["risk_score"] == 95.0
        assert len(body["graph"]["nodes"]) == 5
        assert len(body["graph"]["edges"]) == 4

    def test_rejects_non_csv(self):
        resp = _upload(CYCLE_CSV, filename="transactions.txt")
        assert resp.status_code == 400

    def test_rejects_missing_columns(self):
        resp = _upload("transaction_id,sender_id\nT1,A\n")
        assert resp.status_code == 400
        assert "receiver_id" in resp.json()["detail"]

    def test_rejects_empty(self):
        resp = _upload("transaction_id,sender_id,receiver_id,amount,timestamp\n")
        assert resp.status_code == 400

    def test_analyze_handler_runs_in_threadpool(self):
        assert not inspect.iscoroutinefunction(analyze_file)
