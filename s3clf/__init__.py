"""Amazon S3 Server Access Log to Apache Combined Log Format conversion."""
