"""Keep an AWS managed prefix list pointed at this host's external IP."""
