"""Package entry point for ``python -m llmwhisperer_client``.

WHY: Users run the client from a terminal as
``python -m llmwhisperer_client whisper --file invoice.pdf --wait``.

HOW: Delegates to the CLI's main() function.
"""

from llmwhisperer_client.cli import main

if __name__ == "__main__":
    main()
