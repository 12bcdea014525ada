"""Pool Monitor: Raydium AMM V4 pool creation watcher for Solana."""
