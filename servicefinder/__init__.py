"""A WSGI API where service providers publish postings and customers browse them."""

__version__ = "1.0.0"