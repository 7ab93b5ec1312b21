from setuptools import setup

with open("README.md", "r", encoding="utf-8") as read_me:
    long_description = read_me.read()

setup(
    name="hellowsgi",
    version="0.1.0",
    license="MIT",
    py_modules=["hellowsgi", "hello_app"],
    description="A Hello World web app and the WSGI server CLI that runs it",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
        "Programming Language :: Python :: 3",
        "Development Status :: 3 - Alpha",
    ],
    python_requires=">=3.8",
    install_requires=["click>=7.0", "flask>=2.2", "werkzeug>=2.2", "waitress>=2.1"],
    extras_require={
        "test": ["pytest", "requests"],
    },
    entry_points={
        "console_scripts": [
            "hellowsgi = hellowsgi:run_from_cli",
        ],
    },
)
