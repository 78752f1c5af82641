"""LagosBazaar storefront: catalog, cart, checkout stub and AI product copy."""
