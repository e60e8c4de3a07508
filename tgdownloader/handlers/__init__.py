"""Handlers for YouTube links, uploaded videos and the choice of output format."""