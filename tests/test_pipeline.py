"""Tests for batch processing and the command-line entry point."""

from unittest.mock import Mock

import pytest
import requests

import main
from invoice_detail.catalog import FieldCatalog
from invoice_detail.detection_client import DetectionClient, PredictionResult
from invoice_detail.input_handler import InputHandler
from invoice_detail.pipeline import BatchProcessor
from invoice_detail.utils.exceptions import ConfigurationError, TransportError


class FakeClient:
    """Stands in for DetectionClient; answers by document content."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def detect(self, document_bytes, version, filter_mask=0, want_result_pdf=False):
        self.calls.append((document_bytes, version, filter_mask, want_result_pdf))
        response = self.responses[document_bytes]
        if isinstance(response, Exception):
            raise response
        return PredictionResult.from_dict(response)


def success(value):
    return {
        "InvoiceState": "Success",
        "InvoiceDetailTypePredictions": [
            {"TypeId": 16, "TypeName": "GrandTotalAmount", "Text": value, "Value": value},
        ],
    }


@pytest.fixture
def documents(tmp_path):
    source = tmp_path / "in"
    source.mkdir()
    for name, content in (("a.pdf", b"A"), ("b.png", b"B"), ("c.jpg", b"C")):
        (source / name).write_bytes(content)
    (source / "notes.txt").write_text("ignored")
    return source


class TestInputHandler:

    def test_directory_is_filtered_and_sorted(self, documents):
        files = InputHandler().collect(documents)
        assert [f.name for f in files] == ["a.pdf", "b.png", "c.jpg"]

    def test_single_file(self, documents):
        assert InputHandler().collect(documents / "a.pdf") == [documents / "a.pdf"]

    def test_unsupported_file_is_configuration_error(self, documents):
        with pytest.raises(ConfigurationError):
            InputHandler().collect(documents / "notes.txt")

    def test_missing_path_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            InputHandler().collect(tmp_path / "missing")


class TestBatchProcessor:
    """Per-document isolation of failures."""

    def make_processor(self, client, output_dir, **kwargs):
        kwargs.setdefault("catalog", FieldCatalog())
        kwargs.setdefault("max_workers", 1)
        return BatchProcessor(client, output_dir, version="v1", **kwargs)

    def test_transport_failure_skips_only_that_document(self, tmp_path, documents):
        client = FakeClient({
            b"A": success("1.00"),
            b"B": TransportError(500, "Internal Server Error"),
            b"C": success("3.00"),
        })
        out = tmp_path / "out"
        processor = self.make_processor(client, out)

        outcomes = processor.run(InputHandler().collect(documents))

        assert [o.success for o in outcomes] == [True, False, True]
        assert "500" in outcomes[1].message
        assert (out / "a.csv").exists() and (out / "a.json").exists()
        assert (out / "c.csv").exists() and (out / "c.json").exists()
        assert not list(out.glob("b.*"))
        assert [call[0] for call in client.calls] == [b"A", b"B", b"C"]

    def test_malformed_response_skips_only_that_document(self, tmp_path, documents):
        responses = []
        for body in (success("1.00"), [], success("3.00")):
            response = Mock(status_code=200, reason="OK")
            response.json.return_value = body
            responses.append(response)
        session = requests.Session()
        session.post = Mock(side_effect=responses)
        client = DetectionClient(
            base_url="https://detect.example.test", api_key="k", proxies={}, session=session
        )
        out = tmp_path / "out"

        outcomes = self.make_processor(client, out).run(InputHandler().collect(documents))

        assert [o.success for o in outcomes] == [True, False, True]
        assert "Invalid response body" in outcomes[1].message
        assert (out / "c.csv").exists()
        assert not list(out.glob("b.*"))

    def test_duplicate_stem_is_not_overwritten(self, tmp_path, documents):
        (documents / "a.png").write_bytes(b"A2")
        client = FakeClient({b"A": success("1.00"), b"B": success("2"), b"C": success("3")})
        out = tmp_path / "out"

        outcomes = self.make_processor(client, out).run(InputHandler().collect(documents))

        assert [o.filename for o in outcomes] == ["a.pdf", "a.png", "b.png", "c.jpg"]
        assert [o.success for o in outcomes] == [True, False, True, True]
        assert "a.pdf" in outcomes[1].message
        assert b"A2" not in [call[0] for call in client.calls]
        assert "1.00" in (out / "a.csv").read_text(encoding="utf-8")

    def test_failed_invoice_state_writes_nothing(self, tmp_path, documents):
        client = FakeClient({b"A": {"InvoiceState": "Failed"}})
        out = tmp_path / "out"

        outcome = self.make_processor(client, out).process_document(documents / "a.pdf")

        assert not outcome.success
        assert not out.exists() or not list(out.iterdir())

    def test_filter_mask_and_composites_from_fields(self, tmp_path, documents):
        client = FakeClient({b"A": success("1.00")})
        processor = self.make_processor(client, tmp_path / "out", fields=["Sender", "GrandTotalAmount"])

        processor.process_document(documents / "a.pdf")

        assert processor.filter_mask == 18
        assert processor.composites == {"Sender"}
        assert client.calls[0] == (b"A", "v1", 18, False)

    def test_result_pdf_requested_when_enabled(self, tmp_path, documents):
        client = FakeClient({b"A": success("1.00")})
        processor = self.make_processor(client, tmp_path / "out", write_pdf=True)

        processor.process_document(documents / "a.pdf")

        assert client.calls[0][3] is True

    def test_concurrent_run_keeps_input_order(self, tmp_path, documents):
        client = FakeClient({b"A": success("1"), b"B": success("2"), b"C": success("3")})
        processor = self.make_processor(client, tmp_path / "out", max_workers=3)

        outcomes = processor.run(InputHandler().collect(documents))

        assert [o.filename for o in outcomes] == ["a.pdf", "b.png", "c.jpg"]
        assert all(o.success for o in outcomes)

    def test_write_error_is_reported(self, tmp_path, documents):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        client = FakeClient({b"A": success("1.00")})

        outcome = self.make_processor(client, blocker).process_document(documents / "a.pdf")

        assert not outcome.success
        assert "blocker" in outcome.message


class TestRunBatch:
    """Programmatic and command-line entry points."""

    def test_run_batch_with_merge(self, tmp_path, documents):
        client = FakeClient({
            b"A": success("1.00"),
            b"B": TransportError(404, "Not Found"),
            b"C": success("3.00"),
        })
        out = tmp_path / "out"

        outcomes = main.run_batch(str(documents), str(out), merge=True, max_workers=1, client=client)

        assert len(outcomes) == 3
        lines = (out / "merged.csv").read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("FileName\t")
        assert [line.split("\t")[0] for line in lines[1:]] == ["a", "c"]

    def test_run_batch_rejects_output_file(self, tmp_path, documents):
        target = tmp_path / "file.txt"
        target.write_text("x")

        with pytest.raises(ConfigurationError):
            main.run_batch(str(documents), str(target), client=FakeClient({}))

    def test_main_merge_only(self, tmp_path):
        (tmp_path / "a.csv").write_text(
            "Type\tTypeName\tValue\n16\tGrandTotalAmount\t5.00\n", encoding="utf-8"
        )

        assert main.main(["--merge-only", "--output", str(tmp_path)]) == 0
        assert (tmp_path / "merged.csv").exists()

    def test_main_missing_input_returns_configuration_exit_code(self, tmp_path):
        code = main.main(["--input", str(tmp_path / "missing"), "--output", str(tmp_path / "out")])
        assert code == 2

    def test_main_unknown_csv_column_returns_configuration_exit_code(
        self, tmp_path, documents, fresh_config, capsys
    ):
        fresh_config.set("service.base_url", "https://detect.example.test")
        fresh_config.set("service.api_key", "k")
        fresh_config.set("output.csv.columns", ["Type", "Colour"])

        code = main.main(["--input", str(documents), "--output", str(tmp_path / "out")])

        assert code == 2
        assert "Unknown CSV columns" in capsys.readouterr().err

    def test_input_required_without_merge_only(self):
        with pytest.raises(SystemExit):
            main.parse_arguments(["--output", "somewhere"])
