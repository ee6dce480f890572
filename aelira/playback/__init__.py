"""MIME lookup, WebM demuxing and Opus packet processing."""