import os
import tempfile

# Point the app at a throwaway SQLite database before any galaxyair module is imported
_tmpdir = tempfile.mkdtemp(prefix="galaxyair-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["ENV"] = "test"
os.environ["ADMIN_EMAILS"] = "boss@galaxyair-staff.com"
os.environ["CATALOG_RETRY_BACKOFF_SECONDS"] = "0"

import pytest  # noqa: E402

from galaxyair.db.init_db import create_tables  # noqa: E402
from galaxyair.services.flow_store import flow_store  # noqa: E402

create_tables()


@pytest.fixture(autouse=True)
def _fresh_flows():
    flow_store.clear()
    yield
    flow_store.clear()
