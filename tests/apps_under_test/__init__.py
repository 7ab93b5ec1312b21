from hello_app import app as flask_app
from hello_app import application as wsgi_app
from tests.apps_under_test.error_app import error_app
