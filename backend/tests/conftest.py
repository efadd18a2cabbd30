import os, sys, pytest
# Ensure backend directory is on path so 'repairdesk' and 'tests' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from repairdesk import create_app, get_db
from repairdesk.models.authz import Base
# Import all model modules to ensure tables are registered before create_all
import repairdesk.models.customer  # noqa: F401
import repairdesk.models.catalog  # noqa: F401
import repairdesk.models.part  # noqa: F401
import repairdesk.models.job  # noqa: F401
import repairdesk.models.audit  # noqa: F401


class RecordingNotifier:
    """Notifier double keeping every delivered event in memory."""

    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)

    def of_kind(self, kind):
        return [e for e in self.events if e.kind == kind]


@pytest.fixture(scope='session')
def notifier():
    return RecordingNotifier()


@pytest.fixture(scope='session', autouse=True)
def app_instance(notifier):
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-with-enough-length',
        'LOW_STOCK_ALERT_EMAIL': 'stock-alerts@example.com',
        'JOB_STATUS_STRICT': False,
    }, notifier=notifier)
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture(autouse=True)
def clear_notifications(notifier):
    notifier.events.clear()
    yield


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance


@pytest.fixture()
def client(app_context):
    return app_context.test_client()
