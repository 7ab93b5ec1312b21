"""Hello World application, as a Flask app and as a bare WSGI callable."""

from flask import Flask
from werkzeug.exceptions import HTTPException

HELLO_MESSAGE = "Hello, World!"

CONTENT_TYPE = "text/plain; charset=utf-8"


def create_app(config=None):
    """Create the Flask application.

    Settings are read from ``HELLO_``-prefixed environment variables first,
    then from ``config`` when given.
    """
    app = Flask(__name__)
    app.config.from_prefixed_env("HELLO")
    if config is not None:
        app.config.update(config)

    @app.get("/")
    def hello_world():
        return HELLO_MESSAGE, 200, {"Content-Type": CONTENT_TYPE}

    @app.errorhandler(HTTPException)
    def plain_text_error(e):
        response = e.get_response()
        response.set_data(f"{e.code} {e.name}")
        response.content_type = CONTENT_TYPE
        return response

    return app


app = create_app()

# -------------------------------------------------------------------------------------

def _respond(start_response, status, body, extra_headers=None, head=False):
    headers = [("Content-Type", CONTENT_TYPE), ("Content-Length", str(len(body)))]
    if extra_headers:
        headers += extra_headers
    start_response(status, headers)
    return [] if head else [body]


ALLOWED_METHODS = "GET, HEAD, OPTIONS"


def application(environ, start_response):
    method = environ.get("REQUEST_METHOD", "GET")
    # PATH_INFO may be empty or missing for the application root
    if environ.get("PATH_INFO", "") not in ("", "/"):
        return _respond(start_response, "404 Not Found", b"404 Not Found")
    if method == "OPTIONS":
        return _respond(start_response, "200 OK", b"", [("Allow", ALLOWED_METHODS)])
    if method not in ("GET", "HEAD"):
        return _respond(
            start_response,
            "405 Method Not Allowed",
            b"405 Method Not Allowed",
            [("Allow", ALLOWED_METHODS)],
        )
    return _respond(
        start_response, "200 OK", HELLO_MESSAGE.encode("ascii"), head=method == "HEAD"
    )


if __name__ == "__main__":
    import hellowsgi

    hellowsgi.run(wsgi_app=app, host="0.0.0.0", port=5000)
