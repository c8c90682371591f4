"""qkdpx - guided npm publishing: commit, bump, build, publish, tag."""
