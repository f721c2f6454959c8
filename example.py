from fx_ratecache import FixerExchangeCache, build_exchange_cache

# OANDA cache limited to a few currencies, refreshed every hour
oanda = build_exchange_cache("oanda://YOUR_API_KEY@MUFG?currencies=USD,EUR,JPY,CNY&ttl=3600")
print(oanda.get_rate("USD", "JPY"))
# => Decimal('107.25')

# Rates are directional; the reverse pair is fetched separately
print(oanda.get_rate("JPY", "USD"))

# Drop one cached direction, or everything
oanda.flush_rate("USD", "JPY")
oanda.flush_rates()

# fixer.io table: one call caches every currency against EUR
FixerExchangeCache.set_ttl_in_seconds(86_400)  # class-wide, used by share_expiration=True
fixer = FixerExchangeCache("YOUR_ACCESS_KEY", share_expiration=True)
print(fixer.get_rate("USD", "GBP"))
print(fixer.store.get_rate("JPY", "EUR"))
# => EUR per 1 JPY, i.e. 1 / <JPY per EUR>
