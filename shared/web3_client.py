from web3 import AsyncWeb3, AsyncHTTPProvider
from web3.middleware import ExtraDataToPOAMiddleware


def get_async_web3(rpc_url: str, timeout: float = 30.0) -> AsyncWeb3:
    w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
    # BNB Smart Chain is a POA chain; block extraData exceeds the 32-byte mainnet limit
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return w3
