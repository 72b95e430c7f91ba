# Line protocol constants

CRLF = "\r\n"
CRLF_BYTES = b"\r\n"

CHANNEL_PREFIX = "#"

# Reply lines use this in place of a nick until one is set.
NO_NICK = "*"

# Numeric replies
RPL_WELCOME = 1
RPL_YOURHOST = 2
RPL_CREATED = 3
RPL_MYINFO = 4

RPL_TOPIC = 332
RPL_NAMREPLY = 353
RPL_ENDOFNAMES = 366

RPL_MOTD = 372
RPL_MOTDSTART = 375
RPL_ENDOFMOTD = 376

ERR_UNKNOWNCOMMAND = 421
ERR_NONICKNAMEGIVEN = 431
ERR_ERRONEUSNICKNAME = 432
ERR_NICKNAMEINUSE = 433
ERR_NEEDMOREPARAMS = 461
