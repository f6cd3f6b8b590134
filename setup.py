from setuptools import setup

setup(
    name="pvc-rbdapi",
    version="0.9.100",
    packages=["rbdapid", "daemon_lib"],
    install_requires=[
        "Flask",
        "Flask-RESTful",
        "PyYAML",
        "pydantic>=2",
        "gunicorn",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "rbdapid = rbdapid.Daemon:entrypoint",
        ],
    },
)
