import pathlib
from setuptools import setup

from primecrypt import __doc__ as docstring

setup(
    name="primecrypt",
    version="0.1",
    description=docstring.strip(),
    long_description=(pathlib.Path(__file__).parent / "README.rst").read_text(),
    long_description_content_type="text/x-rst",
    license="MIT",
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Topic :: Security :: Cryptography",
    ],
    python_requires=">=3.7",
    packages=[
        "primecrypt",
        "primecrypt.RSA",
        "primecrypt.DH",
    ],
)
