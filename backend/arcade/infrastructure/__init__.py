"""Infrastructure Layer — provider client, scheduler, gateway adapter, logging."""
