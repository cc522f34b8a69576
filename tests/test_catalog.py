"""Tests for the skill catalog."""

import pytest
from retrieval.catalog import SkillCatalog


CSV = """id,slug,name,description,category,tags,tenant_id,total_uses,average_rating,rating_count,hours_saved,published_at
1,pdf-summarizer,PDF Summarizer,Summarize documents,doc-production,pdf|summary,,120,450,8,2.5,2026-01-10T09:00:00Z
2,chart-maker,Chart Maker,,data-viz,,acme,,,,,
"""


class TestSkillCatalog:
    """Test CSV loading and lookups."""

    def test_from_csv(self, tmp_path):
        """Test rows are parsed into skills with nulls normalized."""
        path = tmp_path / "skills.csv"
        path.write_text(CSV)

        catalog = SkillCatalog.from_csv(str(path))

        assert len(catalog) == 2
        first = catalog.get("1")
        assert first.tags == ["pdf", "summary"]
        assert first.total_uses == 120
        assert first.average_rating == 450
        assert first.rating_count == 8
        assert first.hours_saved == pytest.approx(2.5)
        assert first.tenant_id is None
        assert first.published_at.year == 2026

        second = catalog.get_by_slug("chart-maker")
        assert second.description == ""
        assert second.tags == []
        assert second.total_uses == 0
        assert second.average_rating is None
        assert second.tenant_id == "acme"
        assert second.published_at is None

        assert len(catalog.content_hash) == 32

    def test_missing_required_columns(self, tmp_path):
        """Test a CSV without id/slug/name is rejected."""
        path = tmp_path / "skills.csv"
        path.write_text("id,name\n1,PDF\n")

        with pytest.raises(ValueError):
            SkillCatalog.from_csv(str(path))

    def test_invalid_rows_skipped(self, tmp_path):
        """Test rows failing validation are skipped."""
        path = tmp_path / "skills.csv"
        path.write_text("id,slug,name,average_rating\n1,a,A,900\n2,b,B,300\n")

        catalog = SkillCatalog.from_csv(str(path))

        assert [s.id for s in catalog] == ["2"]

    def test_for_tenant(self, tmp_path):
        """Test tenant visibility."""
        path = tmp_path / "skills.csv"
        path.write_text(CSV)
        catalog = SkillCatalog.from_csv(str(path))

        assert [s.id for s in catalog.for_tenant("acme")] == ["1", "2"]
        assert [s.id for s in catalog.for_tenant("globex")] == ["1"]
        assert len(catalog.for_tenant(None)) == 2
