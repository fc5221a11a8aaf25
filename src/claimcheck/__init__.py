"""
Claimcheck: the claim-check integration pattern over object storage and streams.

Producers store large payloads in a bulk object store and publish only a
compact pointer on a message stream. Consumers redeem each pointer by
fetching the payload it references.
"""

__version__ = "0.3.0"
