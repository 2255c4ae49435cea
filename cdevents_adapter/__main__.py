"""Run the adapter with ``python -m cdevents_adapter``."""

from cdevents_adapter.runtime import main

main()
