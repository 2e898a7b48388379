"""Content source access: CMS client, retries and canonical audit."""
