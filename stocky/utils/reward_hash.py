import hashlib


def create_reward_hash(user_id: str, stock_symbol: str, shares: str, rewarded_at: str) -> str:
    """
    Content digest used to spot duplicate rewards regardless of idempotency key.

    Hashes the caller's raw strings, so "1.0" and "1.000000" are different
    rewards and the digest is reproducible by any client.
    """
    data_string = f"{user_id}{stock_symbol}{shares}{rewarded_at}"
    return hashlib.sha256(data_string.encode("utf-8")).hexdigest()
