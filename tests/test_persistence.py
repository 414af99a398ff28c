from pathlib import Path

from delivery_fee.models.domain import CalculationMethod, DeliveryFeeResult, GeoPoint
from delivery_fee.persistence.filesystem import FileStorage
from delivery_fee.services.fees.service import record_calculation


def test_file_storage_creates_output_directory(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)

    assert storage.output_root == tmp_path / "outputs"
    assert storage.output_root.is_dir()
    assert storage.audit_log_path.parent == storage.output_root


def test_file_storage_appends_jsonl(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    path = storage.output_root / "events.jsonl"

    storage.append_jsonl(path, {"hello": "world"})
    storage.append_jsonl(path, {"fee": 4.5, "city": "عمّان"})

    assert storage.read_jsonl(path) == [{"hello": "world"}, {"fee": 4.5, "city": "عمّان"}]
    assert path.read_text(encoding="utf-8").count("\n") == 2


def test_read_jsonl_missing_file_is_empty(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)

    assert storage.read_jsonl(tmp_path / "nope.jsonl") == []


def test_record_calculation_writes_audit_entry(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path)
    result = DeliveryFeeResult(
        base_fee=5.0,
        surcharge=0.0,
        final_fee=5.0,
        free_shipping_applied=False,
        calculation_method=CalculationMethod.STATIC_DEFAULT,
        customer_point=GeoPoint(31.95, 35.91),
        warnings=("Distance unavailable",),
    )

    record_calculation(result, storage)

    (record,) = storage.read_jsonl(storage.audit_log_path)
    assert record["calculation_method"] == "static_default"
    assert record["is_estimate"] is True
    assert record["customer_point"] == {"latitude": 31.95, "longitude": 35.91}
    assert record["warnings"] == ["Distance unavailable"]
    assert record["computed_at"]
