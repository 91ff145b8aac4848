"""Tax document classifier.

Classifies uploaded tax and compliance documents (country, type, category)
with a vision-capable language model, validates the answer against a
per-country taxonomy and supports per-document chat.

Typical usage:
    from taxdoc.config import get_settings
    from taxdoc.services import create_services

    async with create_services(get_settings(), access_token=token) as services:
        result = await services.classifier.classify(file_url)
"""

__version__ = "0.1.0"
