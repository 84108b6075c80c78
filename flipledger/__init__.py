# FlipLedger: reseller bookkeeping and cross-platform delisting
"""
FlipLedger core package:
- common: configuration, logging, Supabase client, shared models
- marketplaces: eBay / StockX delist clients
- delist: automatic cross-platform delist pipeline
"""
