import redis
from microstore.utils.retry import redis_retry
from microstore.utils.settings import REDIS_URL
from microstore.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje atomowo przez lua, skrypt dziala jako jedna nieprzerywalna operacja
#nie mozna wcisnac sie miedzy GET a DEL

class LockService:
    """
    -blokada pozycji koszyka (cart, product) na czas inkrementacji ilosci
    -zwalnianie locka tylko przez wlasciciela
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def cart_line_key(cart_id: int, product_id: int) -> str:
        return f"cart:{cart_id}:product:{product_id}:lock"

    @redis_retry()
    def acquire_cart_line_lock(self, cart_id: int, product_id: int, owner: str, ttl: int) -> bool:
        key = self.cart_line_key(cart_id, product_id)
        logger.info(f"Acquire lock {key} for {owner}")
        #SET cart:1:product:2:lock "<owner>" NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=owner,
                nx=True, #tylko jesli klucz nie istnieje
                ex=ttl, #wygasa sam, nie trzeba recznie czyscic po crashu
            )
        )

    @redis_retry()
    def release_cart_line_lock(self, cart_id: int, product_id: int, owner: str) -> bool:
        key = self.cart_line_key(cart_id, product_id)
        logger.info(f"Release lock {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)
