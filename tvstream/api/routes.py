from fastapi import APIRouter, HTTPException, Request

router = APIRouter()


@router.get('/session/status')
def get_session_status(request: Request):
    return request.app.state.tv_client.status().model_dump()


@router.get('/quotes/{symbol}')
def get_quote(symbol: str, request: Request):
    quote, found = request.app.state.tv_client.get_last_quote(symbol)
    if not found:
        raise HTTPException(status_code=404, detail='SYMBOL_NOT_WATCHED')
    return quote.model_dump()


@router.get('/quotes')
def get_quotes(symbols: str, request: Request):
    client = request.app.state.tv_client
    req = [s.strip() for s in symbols.split(',') if s.strip()]
    out = []
    for s in req:
        quote, found = client.get_last_quote(s)
        if found:
            out.append(quote.model_dump())
    return out


@router.post('/watch/{symbol}')
def watch_symbol(symbol: str, request: Request):
    client = request.app.state.tv_client
    added = client.watch(symbol)
    return {
        'symbol': symbol,
        'added': added,
        'connected': client.is_connected,
    }
