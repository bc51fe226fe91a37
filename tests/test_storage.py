import pytest

from dataset_insight_api.core.exceptions import StorageError
from dataset_insight_api.services.health import check_storage_root
from dataset_insight_api.services.storage import InMemoryStorage, LocalFileStorage


class TestLocalFileStorage:
    @pytest.mark.asyncio
    async def test_round_trip_creates_directories(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))
        await storage.upload("raw/u1/job_sales.csv", "a,b\n1,2")

        assert (tmp_path / "raw" / "u1" / "job_sales.csv").exists()
        assert await storage.download("raw/u1/job_sales.csv") == "a,b\n1,2"

    @pytest.mark.asyncio
    async def test_missing_object(self, tmp_path):
        with pytest.raises(StorageError):
            await LocalFileStorage(str(tmp_path)).download("raw/none.csv")

    @pytest.mark.asyncio
    async def test_path_cannot_escape_root(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path / "root"))
        with pytest.raises(StorageError):
            await storage.upload("../outside.csv", "x")


@pytest.mark.asyncio
async def test_in_memory_missing_object():
    with pytest.raises(StorageError):
        await InMemoryStorage().download("nope")


def test_storage_root_check(tmp_path):
    assert check_storage_root(str(tmp_path))[0] is True
    assert check_storage_root(str(tmp_path / "missing"))[0] is False
